import re
from typing import Any

# 0x + 64 hex characters, matched as-is (no trimming or case folding)
ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")

ADDRESS_EXAMPLE = "0x" + "1234567890abcdef" * 4


def is_valid_address(candidate: Any) -> bool:
    if not isinstance(candidate, str):
        return False
    return ADDRESS_PATTERN.fullmatch(candidate) is not None
