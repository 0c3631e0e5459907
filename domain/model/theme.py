from enum import Enum


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"

    @property
    def is_dark(self) -> bool:
        return self is Theme.DARK

    def toggled(self) -> "Theme":
        return Theme.LIGHT if self.is_dark else Theme.DARK
