"""
Machine constants and run configuration.

RUN_PROFILES mirrors the named-profile approach used for target selection
in the CLI: a host picks a profile by name and may still override single
fields (e.g. --max-instructions).
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

# =============================================================================
#  MACHINE GEOMETRY
# =============================================================================
MEMORY_SLOTS = 256                      # %0 .. %255
ACCUMULATOR = "A"                       # destination of every ALU result
FLAGS_REGISTER = "F"                    # modeled, not addressable
GENERAL_REGISTERS: Tuple[str, ...] = tuple(f"R{i}" for i in range(9))
REGISTER_NAMES: Tuple[str, ...] = GENERAL_REGISTERS + (ACCUMULATOR, FLAGS_REGISTER)

# Registers an operand token may name (F is deliberately absent).
ADDRESSABLE_REGISTERS = frozenset(GENERAL_REGISTERS + (ACCUMULATOR,))


# =============================================================================
#  EXECUTION BUDGET
# =============================================================================
DEFAULT_MAX_INSTRUCTIONS = 100_000
MAX_TEXT_LENGTH = 65_536                # characters in one Text result


@dataclass(frozen=True)
class RunConfig:
    """Options a host passes to run().

    max_instructions: budget of executed instructions; None disables it.
    max_text_length: longest Text an ADD or MUL may produce.
    trace: log every executed instruction at DEBUG and keep a trace list.
    """
    max_instructions: Optional[int] = DEFAULT_MAX_INSTRUCTIONS
    max_text_length: int = MAX_TEXT_LENGTH
    trace: bool = False

    def __post_init__(self):
        if self.max_instructions is not None and self.max_instructions < 0:
            raise ValueError(f"max_instructions must be >= 0, got {self.max_instructions}")
        if self.max_text_length < 0:
            raise ValueError(f"max_text_length must be >= 0, got {self.max_text_length}")

    def with_overrides(self, **changes) -> "RunConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


RUN_PROFILES: Dict[str, Dict] = {
    "default": {
        "description": "General use, 100k instruction budget",
        "config": RunConfig(),
    },
    "puzzle": {
        "description": "Level validation, tight 10k budget",
        "config": RunConfig(max_instructions=10_000),
    },
    "unbounded": {
        "description": "No instruction budget (trusted programs only)",
        "config": RunConfig(max_instructions=None),
    },
}
