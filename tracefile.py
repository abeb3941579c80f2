# tracefile.py
"""
Reading valgrind (lackey) style memory traces.

Each record looks like

    I 0400d7d4,8
     M 0421c7f0,4
     L 04f6b868,8
     S 7ff0005c8,8

i.e. [space]operation address,size. I is an instruction fetch and never
carries a leading space; L, S and M are data loads, stores and modifies.
The size field is ignored.
"""
import enum
import re
from dataclasses import dataclass
from typing import Optional

from errors import MalformedTraceLine, TraceOpenError, UnknownOperation

HEX_ADDRESS = re.compile(r"[0-9a-fA-F]{1,16}")
DECIMAL_SIZE = re.compile(r"\d+")


class AccessKind(enum.Enum):
    INSTRUCTION = "I"
    LOAD = "L"
    STORE = "S"
    MODIFY = "M"

    @property
    def sub_accesses(self):
        # a modify is a load followed by a store to the same address
        return {"I": 0, "L": 1, "S": 1, "M": 2}[self.value]


@dataclass
class MemoryAccess:
    kind: AccessKind
    address: int = 0
    size: Optional[int] = None
    text: str = ""

    def echo(self):
        """Record as printed in verbose mode: no leading space, address without leading zeros."""
        address_field, _, rest = self.text[2:].partition(",")
        address_field = address_field.lstrip("0") or "0"
        return f"{self.text[:2]}{address_field},{rest}"


def parse_record(line, line_number=None):
    """
    Parse one trace line into a MemoryAccess.

    Returns None for blank lines. Instruction records are classified without
    looking at the rest of the line. Raises UnknownOperation or
    MalformedTraceLine for records that cannot be simulated.
    """
    text = line.rstrip("\r\n")
    if not text.strip():
        return None
    if text[0] == AccessKind.INSTRUCTION.value:
        return MemoryAccess(AccessKind.INSTRUCTION, text=text)

    body = text[1:] if text[0] == " " else text
    if not body:
        raise MalformedTraceLine("empty record", line, line_number)
    op = body[0]
    if op.isspace():
        raise MalformedTraceLine("unexpected whitespace before the operation", line, line_number)
    try:
        kind = AccessKind(op)
    except ValueError:
        raise UnknownOperation(op, line, line_number) from None
    if kind is AccessKind.INSTRUCTION:
        return MemoryAccess(kind, text=body)

    if len(body) < 2 or body[1] != " ":
        raise MalformedTraceLine(f"expected a space after {op!r}", line, line_number)
    comma = body.find(",", 2)
    if comma < 0:
        raise MalformedTraceLine("missing ',' after the address", line, line_number)
    address_text = body[2:comma]
    if not HEX_ADDRESS.fullmatch(address_text):
        raise MalformedTraceLine(f"bad hexadecimal address {address_text!r}", line, line_number)

    size_match = DECIMAL_SIZE.match(body, comma + 1)
    size = int(size_match.group()) if size_match else None
    return MemoryAccess(kind, int(address_text, 16), size, body)


def open_trace(path):
    try:
        return open(path, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        raise TraceOpenError(path, e.strerror or e) from e
