from dataclasses import dataclass


@dataclass(slots=True)
class Principal:
    username: str
    is_admin: bool = False

    def require_admin(self) -> None:
        if not self.is_admin:
            raise PermissionError("admin rights required")

    def require_admin_or_self(self, username: str) -> None:
        if self.is_admin or self.username == username:
            return
        raise PermissionError(f"admin rights or user {username} required")
