from dataclasses import dataclass
from enum import Enum
from constants import ADDRESS_BITS

class InstructionType(Enum):
    INSTRUCTION = "I"
    LOAD = "L"
    STORE = "S"
    MODIFY = "M"

class TraceParseError(ValueError):
    def __init__(self, message: str, line: str, line_number: int = None):
        self.line = line
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{message} - {line.strip()!r}")

@dataclass
class Instruction:
    type: InstructionType
    address: int
    size: int = 0

    def __str__(self):
        return f"{self.type.value} {self.address:x},{self.size}"

def parse_instruction(line: str, line_number: int = None) -> Instruction | None:
    """
    Parse one trace line of the form " L 7ff0005b8,8".
    Returns None for blank lines.
    """
    stripped = line.strip()
    if not stripped:
        return None

    parts = stripped.split(maxsplit=1)
    if len(parts) != 2:
        raise TraceParseError("expected an operation and an address", line, line_number)
    op, operand = parts

    try:
        instr_type = InstructionType(op)
    except ValueError:
        raise TraceParseError(f"unknown operation {op!r}", line, line_number) from None

    addr_str, sep, size_str = operand.partition(",")
    if not sep:
        raise TraceParseError("expected <address>,<size>", line, line_number)

    try:
        address = int(addr_str.strip(), 16)
        size = int(size_str.strip(), 10)
    except ValueError:
        raise TraceParseError("malformed address or size", line, line_number) from None

    if address < 0 or address >= (1 << ADDRESS_BITS):
        raise TraceParseError(f"address does not fit in {ADDRESS_BITS} bits", line, line_number)
    if size < 0:
        raise TraceParseError("negative access size", line, line_number)

    return Instruction(instr_type, address, size)
