from pathlib import Path
from typing import Literal, Union

from crm.core.logger import logger

Theme = Literal["light", "dark"]


class ThemePreference:
    """Theme choice persisted as a single word in a small text file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Theme:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return "light"
        return "dark" if value == "dark" else "light"

    def save(self, theme: Theme) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(theme, encoding="utf-8")
        logger.debug("[ThemePreference] saved theme=%s to %s", theme, self.path)
