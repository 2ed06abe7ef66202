from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Link:
    name: str
    url: str


@dataclass(frozen=True)
class Limits:
    window_sec: int = 3600
    max_requests: int = 3
    cooldown_sec: int = 300


@dataclass(frozen=True)
class Config:
    name: str
    version: str
    network: str
    faucet_api_url: str
    limits: Limits
    links: List[Link]
    timeout_sec: float = 15.0

    @property
    def user_agent(self) -> str:
        return f"{self.name.replace(' ', '')}/{self.version}"
