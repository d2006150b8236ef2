from dataclasses import dataclass

from core.otp_core import DEFAULT_TIME_STEP


@dataclass
class VaultEntry:
    """A named TOTP secret. Entries are unique by `secret`, not by `name`."""

    name: str
    secret: str
    time_step: int = DEFAULT_TIME_STEP

    def __post_init__(self):
        # the vault line format has no escaping
        if "\t" in self.name or "\n" in self.name or "\r" in self.name:
            raise ValueError("Entry name must not contain tabs or newlines")
        if not self.secret or any(c in self.secret for c in "\t\r\n"):
            raise ValueError("Entry secret must be a non-empty single-line string")
        if isinstance(self.time_step, bool) or not isinstance(self.time_step, int) or self.time_step <= 0:
            raise ValueError("Time step must be a positive integer")

    def to_dict(self, index: int = None) -> dict:
        data = {"name": self.name, "time_step": self.time_step}
        if index is not None:
            data["index"] = index
        return data
