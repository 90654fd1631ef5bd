"""Closed vocabularies and the extension compiler.

A vocabulary is a ``StrEnum`` plus per-variant documentation and an
optional default member. Base vocabularies are plain ``StrEnum`` classes so
the dispatch engine can match on them exhaustively. A host project extends
a base vocabulary with :func:`compose`, which builds a new ``StrEnum`` via
the functional API and pairs it with a fallible :meth:`~ExtendedVocabulary.downcast`
back to the base type.

Example::

    targets = compose("Target", [VariantSpec("frontend", "Web crates only.")])
    targets.downcast(targets.enum("crates"))    # -> Target.CRATES
    targets.downcast(targets.enum("frontend"))  # raises UnsupportedVariantError
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

from xtaskctl.domain.errors import CompositionError, UnsupportedVariantError

_VARIANT_NAME_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")


@dataclass(frozen=True)
class VariantSpec:
    """Declarative description of one variant.

    Attributes:
        name: CLI spelling, lowercase kebab-case (``"all-packages"``).
        doc: Help text shown by ``--help``.
        default: Mark this variant as the vocabulary default.
        redeclare: Re-declare an existing base variant (to change its doc
            or make it the default) instead of adding a new one.
    """

    name: str
    doc: str = ""
    default: bool = False
    redeclare: bool = False


class Vocabulary:
    """A named, ordered, closed set of variants."""

    def __init__(
        self,
        name: str,
        enum: type[StrEnum],
        docs: Mapping[str, str] | None = None,
        default: StrEnum | None = None,
    ) -> None:
        if default is not None and default not in enum:
            msg = f"Default {default!r} is not a member of {enum.__name__}"
            raise CompositionError(msg)
        self.name = name
        self.enum = enum
        self.docs: dict[str, str] = dict(docs or {})
        self.default = default

    def __iter__(self) -> Iterator[StrEnum]:
        return iter(self.enum)

    def __len__(self) -> int:
        return len(self.enum)

    def __contains__(self, value: object) -> bool:
        if isinstance(value, str):
            return value in self.names()
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.names()!r})"

    def names(self) -> list[str]:
        """Variant names in declared order."""
        return [member.value for member in self.enum]

    def doc(self, value: str) -> str:
        """Documentation for *value* (empty string if undocumented)."""
        return self.docs.get(str(value), "")

    def parse(self, value: str) -> StrEnum:
        """Return the member spelled *value*, or raise ``ValueError``."""
        try:
            return self.enum(value)
        except ValueError:
            valid = ", ".join(self.names())
            msg = f"Invalid {self.name} '{value}'. Valid values: {valid}"
            raise ValueError(msg) from None

    def specs(self) -> list[VariantSpec]:
        """Declarative view of the variants, default marker included."""
        return [
            VariantSpec(member.value, self.doc(member.value), default=member is self.default)
            for member in self.enum
        ]


class ExtendedVocabulary(Vocabulary):
    """A vocabulary built from a base vocabulary plus host-declared variants."""

    def __init__(
        self,
        name: str,
        enum: type[StrEnum],
        docs: Mapping[str, str],
        default: StrEnum | None,
        *,
        base: Vocabulary,
        host_names: Sequence[str],
    ) -> None:
        super().__init__(name, enum, docs, default)
        self.base = base
        self.host_names: tuple[str, ...] = tuple(host_names)

    def is_host(self, value: str) -> bool:
        """True when *value* only exists in this extension."""
        return str(value) in self.host_names

    def downcast(self, value: str) -> StrEnum:
        """Map an extended value back to the base vocabulary.

        Raises:
            UnsupportedVariantError: *value* is a host-only variant.
        """
        member = self.enum(str(value))
        if member.value in self.host_names:
            raise UnsupportedVariantError(member.value, self.base.name)
        return self.base.enum(member.value)

    def upcast(self, value: StrEnum) -> StrEnum:
        """Map a base value into this vocabulary."""
        return self.enum(value.value)


def _check_name(name: str, vocabulary: str) -> None:
    if not _VARIANT_NAME_RE.match(name):
        msg = (
            f"Invalid variant name '{name}' for {vocabulary}: "
            "use lowercase kebab-case (e.g. 'my-target')."
        )
        raise CompositionError(msg)


def _member_name(value: str) -> str:
    return value.upper().replace("-", "_")


def _build(
    name: str,
    base: Vocabulary,
    base_names: Sequence[str],
    host_variants: Sequence[VariantSpec],
    default_candidates: Sequence[str],
) -> ExtendedVocabulary:
    """Assemble the merged enum, validating names and defaults."""
    docs = {n: base.doc(n) for n in base_names}
    host: list[str] = []
    overrides: list[str] = []
    seen: set[str] = set()

    for spec in host_variants:
        _check_name(spec.name, base.name)
        if spec.name in seen:
            msg = f"Variant '{spec.name}' is declared twice for {base.name}."
            raise CompositionError(msg)
        seen.add(spec.name)

        if spec.name in base.names():
            if not spec.redeclare:
                msg = (
                    f"Variant '{spec.name}' collides with a base variant of {base.name}. "
                    "Mark it with redeclare=True to change its documentation or default."
                )
                raise CompositionError(msg)
            if spec.name not in base_names:
                msg = f"Variant '{spec.name}' is not part of this {base.name} selection."
                raise CompositionError(msg)
            if spec.doc:
                docs[spec.name] = spec.doc
        else:
            if spec.redeclare:
                msg = (
                    f"Cannot re-declare '{spec.name}': it is not a variant of {base.name}. "
                    f"Base variants: {', '.join(base.names())}"
                )
                raise CompositionError(msg)
            host.append(spec.name)
            docs[spec.name] = spec.doc

        if spec.default:
            overrides.append(spec.name)

    if len(overrides) > 1:
        msg = (
            f"At most one default override is allowed for {base.name}, "
            f"got: {', '.join(overrides)}"
        )
        raise CompositionError(msg)

    default_name: str | None = overrides[0] if overrides else None
    if default_name is None:
        default_name = next((n for n in default_candidates if n in base_names), None)

    members = [(_member_name(n), n) for n in [*base_names, *host]]
    enum = StrEnum(name, members, module=__name__)  # type: ignore[misc]
    default = enum(default_name) if default_name is not None else None
    return ExtendedVocabulary(name, enum, docs, default, base=base, host_names=host)


def compose(
    base: Vocabulary | str,
    host_variants: Sequence[VariantSpec] = (),
    *,
    name: str | None = None,
    registry: Mapping[str, Vocabulary] | None = None,
) -> ExtendedVocabulary:
    """Merge *host_variants* into *base*.

    Base variants keep their order and come first; host variants follow in
    declared order. The base default survives unless exactly one spec sets
    ``default=True``.

    Args:
        base: A vocabulary, or the name of a registered base vocabulary.
        host_variants: Additional (or re-declared) variants.
        name: Name of the generated enum (defaults to ``Extended<Base>``).
        registry: Lookup table for *base* given by name. Defaults to
            :data:`xtaskctl.domain.subcommands.BASE_VOCABULARIES`.

    Raises:
        CompositionError: unknown base name, name collision, duplicate
            declaration, or more than one default override.
    """
    if isinstance(base, str):
        if registry is None:
            from xtaskctl.domain.subcommands import BASE_VOCABULARIES

            registry = BASE_VOCABULARIES
        found = registry.get(base)
        if found is None:
            msg = "Unknown vocabulary: {}\nPossible vocabularies are:\n  {}".format(
                base, "\n  ".join(registry)
            )
            raise CompositionError(msg)
        base = found

    default_candidates = [base.default.value] if base.default is not None else []
    return _build(
        name or f"Extended{base.enum.__name__}",
        base,
        base.names(),
        host_variants,
        default_candidates,
    )


def select(
    base: Vocabulary,
    names: Sequence[str] | None,
    host_variants: Sequence[VariantSpec] = (),
    *,
    name: str | None = None,
) -> ExtendedVocabulary:
    """Pick a subset of *base* by name, in the given order, then append hosts.

    ``names=None`` keeps every base variant in base order. Names are matched
    case-insensitively so ``["Build", "Check"]`` works.

    Raises:
        CompositionError: an unknown base name (the message lists every valid
            name), a repeated name, or any :func:`compose` error.
    """
    if names is None:
        chosen = base.names()
    else:
        chosen = []
        for raw in names:
            value = raw.strip().lower()
            if value not in base.names():
                msg = "Unknown {}: {}\nPossible values are:\n  {}".format(
                    base.name.lower(), raw, "\n  ".join(base.names())
                )
                raise CompositionError(msg)
            if value in chosen:
                msg = f"{base.name} '{value}' is selected twice."
                raise CompositionError(msg)
            chosen.append(value)

    default_candidates = [base.default.value] if base.default is not None else []
    return _build(
        name or f"Selected{base.enum.__name__}",
        base,
        chosen,
        host_variants,
        default_candidates,
    )
