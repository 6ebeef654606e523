from dataclasses import dataclass
from enum import Enum
from constants import (
    KIND_INSTRUCTION,
    KIND_LOAD,
    KIND_STORE,
    KIND_MODIFY,
)

class AccessKind(Enum):
    LOAD = KIND_LOAD
    STORE = KIND_STORE
    MODIFY = KIND_MODIFY
    IGNORE = KIND_INSTRUCTION

@dataclass(frozen=True)
class AccessRecord:
    kind: AccessKind
    address: int
    size: int = 1

    def __str__(self):
        return f"{self.kind.value} {self.address:x},{self.size}"
