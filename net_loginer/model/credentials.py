from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    user_id: str
    password: str = field(repr=False)
