import structlog

from domain.model.theme import Theme
from ports.persistence import PreferencesStorePort

logger = structlog.get_logger(__name__)

THEME_KEY = "theme"
LAUNCHED_KEY = "alreadyLaunched"

class Preferences:
    """Tema (claro/escuro) e flag de primeiro acesso."""

    def __init__(self, store: PreferencesStorePort):
        self.store = store

    @property
    def theme(self) -> Theme:
        return Theme.DARK if self.store.get(THEME_KEY) == Theme.DARK.value else Theme.LIGHT

    def toggle_theme(self) -> Theme:
        new_theme = self.theme.toggled()
        self.store.set(THEME_KEY, new_theme.value)
        logger.info("preferences.theme.toggled", theme=new_theme.value)
        return new_theme

    def is_first_launch(self) -> bool:
        return self.store.get(LAUNCHED_KEY) != "true"

    def mark_onboarded(self) -> None:
        self.store.set(LAUNCHED_KEY, "true")
