from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union
import uuid

from ..config import (
    DEFAULT_AUTHOR,
    DEFAULT_LANGUAGE,
    DEFAULT_QUALITY,
    DEFAULT_TITLE,
)


def _new_id() -> str:
    return uuid.uuid4().hex


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Horodatage ISO-8601 au format attendu par dcterms:modified."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(eq=False)
class ImageAsset:
    """Image source d'un album, avec sa position dans la séquence."""

    path: Path
    order: int = 0
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.path = Path(self.path)

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        """Extension en minuscules, sans le point."""
        return self.path.suffix.lower().lstrip(".")

    def __eq__(self, other):
        if not isinstance(other, ImageAsset):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


class ImageList:
    """
    Collection ordonnée d'images.

    Après chaque modification, les champs ``order`` forment la suite
    contiguë 0..N-1 et correspondent à la position dans la liste.
    """

    def __init__(self, paths: Iterable[Union[str, Path]] = ()):
        self._items: List[ImageAsset] = []
        self.add(paths)

    def add(self, paths: Iterable[Union[str, Path]]) -> List[ImageAsset]:
        """Ajoute des images en fin de liste."""
        start = len(self._items)
        new_items = [ImageAsset(path=p, order=start + i) for i, p in enumerate(paths)]
        self._items.extend(new_items)
        return new_items

    def remove(self, indices: Union[int, Iterable[int]]) -> List[ImageAsset]:
        """Supprime les images aux positions données et renumérote."""
        targets = self._check_indices(indices)
        removed = [self._items[i] for i in targets]
        self._items = [item for i, item in enumerate(self._items) if i not in targets]
        self._renumber()
        return removed

    def move(self, sources: Union[int, Iterable[int]], destination: int):
        """
        Déplace les images aux positions ``sources`` juste avant l'élément
        qui se trouvait à ``destination`` (``len(self)`` pour la fin de liste).
        """
        targets = self._check_indices(sources)
        if not 0 <= destination <= len(self._items):
            raise IndexError(f"destination out of range: {destination}")

        moving = [self._items[i] for i in targets]
        remaining = [item for i, item in enumerate(self._items) if i not in targets]
        insert_at = destination - sum(1 for i in targets if i < destination)
        remaining[insert_at:insert_at] = moving
        self._items = remaining
        self._renumber()

    def _check_indices(self, indices: Union[int, Iterable[int]]) -> List[int]:
        if isinstance(indices, int):
            indices = [indices]
        targets = sorted(set(indices))
        for i in targets:
            if not 0 <= i < len(self._items):
                raise IndexError(f"image index out of range: {i}")
        return targets

    def _renumber(self):
        for index, item in enumerate(self._items):
            item.order = index

    def __iter__(self) -> Iterator[ImageAsset]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> ImageAsset:
        return self._items[index]

    def as_list(self) -> List[ImageAsset]:
        return list(self._items)


@dataclass(frozen=True)
class PackageMetadata:
    """Métadonnées d'un paquet EPUB (immuables)."""

    identifier: str
    title: str
    author: str
    language: str
    modified: str
    double_page: bool = False

    @classmethod
    def create(
        cls,
        identifier: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        language: Optional[str] = None,
        modified: Optional[str] = None,
        double_page: bool = False,
    ) -> "PackageMetadata":
        """Construit des métadonnées en complétant les champs manquants."""
        return cls(
            identifier=identifier or str(uuid.uuid4()),
            title=title or DEFAULT_TITLE,
            author=author or DEFAULT_AUTHOR,
            language=language or DEFAULT_LANGUAGE,
            modified=modified or utc_timestamp(),
            double_page=double_page,
        )


@dataclass(frozen=True)
class ManifestEntry:
    """Entrées de manifeste dérivées d'une image (image + page XHTML)."""

    image_id: str
    image_href: str
    media_type: str
    page_id: str
    page_href: str
    page_number: int

    @property
    def is_cover(self) -> bool:
        return self.page_number == 1

    @property
    def image_filename(self) -> str:
        return self.image_href.rsplit("/", 1)[-1]

    @property
    def page_filename(self) -> str:
        return self.page_href.rsplit("/", 1)[-1]


class CompressionFormat(Enum):
    """Formats de sortie de la recompression."""

    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def file_extension(self) -> str:
        return "jpg" if self is CompressionFormat.JPEG else "webp"

    @property
    def mime_type(self) -> str:
        return "image/jpeg" if self is CompressionFormat.JPEG else "image/webp"

    @property
    def pil_format(self) -> str:
        return "JPEG" if self is CompressionFormat.JPEG else "WEBP"

    @classmethod
    def parse(cls, value: Union[str, "CompressionFormat"]) -> "CompressionFormat":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "jpg":
            key = "jpeg"
        return cls(key)


@dataclass(frozen=True)
class CompressionSettings:
    quality: float = DEFAULT_QUALITY
    format: CompressionFormat = CompressionFormat.JPEG

    def __post_init__(self):
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError(f"quality must be between 0.0 and 1.0, got {self.quality}")

    @property
    def quality_percentage(self) -> int:
        return int(self.quality * 100)


class StateKind(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessingState:
    """
    État d'une opération longue.

    Type à variantes explicites: ``kind`` détermine quels champs sont
    significatifs (progress/message pour PROCESSING, output_path pour
    COMPLETED, message pour ERROR).
    """

    kind: StateKind = StateKind.IDLE
    progress: float = 0.0
    message: str = ""
    output_path: Optional[Path] = None

    @classmethod
    def idle(cls) -> "ProcessingState":
        return cls(StateKind.IDLE)

    @classmethod
    def processing(cls, progress: float, message: str) -> "ProcessingState":
        return cls(StateKind.PROCESSING, progress=progress, message=message)

    @classmethod
    def completed(cls, output_path: Union[str, Path]) -> "ProcessingState":
        return cls(StateKind.COMPLETED, progress=1.0, output_path=Path(output_path))

    @classmethod
    def error(cls, message: str) -> "ProcessingState":
        return cls(StateKind.ERROR, message=message)

    @property
    def is_processing(self) -> bool:
        return self.kind is StateKind.PROCESSING

    @property
    def is_completed(self) -> bool:
        return self.kind is StateKind.COMPLETED

    @property
    def is_error(self) -> bool:
        return self.kind is StateKind.ERROR

    @property
    def error_message(self) -> Optional[str]:
        return self.message if self.is_error else None


class OutcomeStatus(Enum):
    CONVERTED = "converted"
    SKIPPED = "skipped"


@dataclass
class ItemOutcome:
    """Résultat de la recompression d'une image."""

    path: str
    status: OutcomeStatus
    new_path: Optional[str] = None
    reason: str = ""
    original_size: int = 0
    new_size: int = 0


@dataclass
class RecompressionReport:
    """Bilan d'une recompression: une entrée par image trouvée."""

    source: Path
    destination: Path
    outcomes: List[ItemOutcome] = field(default_factory=list)
    original_size: int = 0
    final_size: int = 0

    @property
    def converted(self) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.CONVERTED]

    @property
    def skipped(self) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SKIPPED]

    @property
    def fully_converted(self) -> bool:
        return not self.skipped
