from dataclasses import dataclass
from typing import Dict, List, Protocol


@dataclass(frozen=True)
class FetchResult:
    url: str
    status: int
    content_type: str
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        charset = "utf-8"
        for part in self.content_type.split(";")[1:]:
            key, _, value = part.strip().partition("=")
            if key.lower() == "charset" and value:
                charset = value.strip('"')
        try:
            return self.body.decode(charset, errors="ignore")
        except LookupError:
            return self.body.decode("utf-8", errors="ignore")


@dataclass(frozen=True)
class ImageRecord:
    url: str
    size: int
    width: int
    height: int
    type: str


PageResults = Dict[str, List[ImageRecord]]


class HttpClientProtocol(Protocol):
    def get(self, url: str) -> FetchResult: ...
