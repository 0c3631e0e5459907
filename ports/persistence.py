from typing import Optional

class TokenStorePort:
    def get_token(self) -> Optional[str]:
        """Token bearer salvo, se houver."""
        raise NotImplementedError

    def set_token(self, token: str) -> None:
        raise NotImplementedError

    def delete_token(self) -> None:
        raise NotImplementedError

class PreferencesStorePort:
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError
