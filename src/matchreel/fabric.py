"""Zip/fold algebra for re-assembling independently matched sequences.

Pattern kits for different target types run independently over the same
document, so the only thing relating a URL to its video file, or a group of
files to its file source, is position. The functions here pair and group
lazy sequences by position and attach the results to their parents.

Unequal lengths never raise. The sequence that is (or becomes) the base of
the chain keeps all of its elements; surplus elements of the sequence being
consumed are dropped and logged.
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    List,
    Protocol,
    TypeVar,
)

from .models import VideoFile, VideoFilePack

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")
P = TypeVar("P")

_MISSING = object()


class Folder(Protocol[T, A]):
    """Partitions a sequence into contiguous groups."""

    def identity(self) -> A:
        ...

    def accumulate(self, item: T, group: A) -> None:
        ...

    def is_full(self, item: T, group: A) -> bool:
        """Whether ``group`` is complete; asked before ``item`` is added."""
        ...


class PackFolder:
    """Groups video files into packs holding at most one file per part."""

    def identity(self) -> VideoFilePack:
        return VideoFilePack()

    def accumulate(self, item: VideoFile, group: VideoFilePack) -> None:
        group.put(item)

    def is_full(self, item: VideoFile, group: VideoFilePack) -> bool:
        return item.slot in group


class ListFolder(Generic[T]):
    """Collects the whole sequence into a single list."""

    def identity(self) -> List[T]:
        return []

    def accumulate(self, item: T, group: List[T]) -> None:
        group.append(item)

    def is_full(self, item: T, group: List[T]) -> bool:
        return False


def _drain_surplus(remaining: Iterator[Any], *, stage: str) -> None:
    surplus = sum(1 for _ in remaining)
    if surplus:
        LOGGER.warning("%s: %d surplus element(s) had no counterpart and were dropped", stage, surplus)


def zip_into(base: Iterable[T], other: Iterable[U], combiner: Callable[[U, T], Any]) -> Iterator[U]:
    """Apply ``combiner(other[i], base[i])`` pairwise and yield ``other``.

    Elements of ``other`` beyond the length of ``base`` are yielded unmodified.
    """
    base_iter = iter(base)
    for target in other:
        source = next(base_iter, _MISSING)
        if source is not _MISSING:
            combiner(target, source)
        yield target
    _drain_surplus(base_iter, stage="zip_into")


def zip_with(base: Iterable[T], other: Iterable[U], combiner: Callable[[T, U], Any]) -> Iterator[T]:
    """Apply ``combiner(base[i], other[i])`` pairwise and yield ``base``."""
    other_iter = iter(other)
    for target in base:
        source = next(other_iter, _MISSING)
        if source is not _MISSING:
            combiner(target, source)
        yield target
    _drain_surplus(other_iter, stage="zip_with")


def fold(items: Iterable[T], folder: Folder[T, A]) -> Iterator[A]:
    """Yield the groups ``folder`` forms over ``items``, in order."""
    group = folder.identity()
    received = False
    for item in items:
        if received and folder.is_full(item, group):
            yield group
            group = folder.identity()
            received = False
        folder.accumulate(item, group)
        received = True
    if received:
        yield group


def fold_into(
    base: Iterable[T],
    parents: Iterable[P],
    folder: Folder[T, A],
    attach: Callable[[P, A], Any],
) -> Iterator[P]:
    """Fold ``base`` into groups and attach group ``i`` to parent ``i``; yield the parents."""
    return zip_into(fold(base, folder), parents, attach)


def fold_with(
    base: Iterable[P],
    children: Iterable[T],
    folder: Folder[T, A],
    attach: Callable[[P, A], Any],
) -> Iterator[P]:
    """Fold ``children`` into groups and attach group ``i`` to base element ``i``."""
    return zip_with(base, fold(children, folder), attach)


class Bolt(Generic[T]):
    """Fluent chaining of zip and fold stages.

    ``zip_with``/``fold_with`` keep the current base; ``zip_into``/``fold_into``
    make the other sequence the new base::

        Bolt.of(links)
            .zip_into(files, VideoFile.set_external_url)
            .fold_into(sources, PackFolder(), VideoFileSource.add_video_file_pack)
            .stream()
    """

    def __init__(self, items: Iterable[T]) -> None:
        self._items = items

    @classmethod
    def of(cls, items: Iterable[T]) -> "Bolt[T]":
        return cls(items)

    def zip_with(self, other: Iterable[U], combiner: Callable[[T, U], Any]) -> "Bolt[T]":
        return Bolt(zip_with(self._items, other, combiner))

    def zip_into(self, other: Iterable[U], combiner: Callable[[U, T], Any]) -> "Bolt[U]":
        return Bolt(zip_into(self._items, other, combiner))

    def fold_with(
        self,
        children: Iterable[U],
        folder: Folder[U, A],
        attach: Callable[[T, A], Any],
    ) -> "Bolt[T]":
        return Bolt(fold_with(self._items, children, folder, attach))

    def fold_into(
        self,
        parents: Iterable[P],
        folder: Folder[T, A],
        attach: Callable[[P, A], Any],
    ) -> "Bolt[P]":
        return Bolt(fold_into(self._items, parents, folder, attach))

    def stream(self) -> Iterator[T]:
        return iter(self._items)

    def to_list(self) -> List[T]:
        return list(self.stream())
