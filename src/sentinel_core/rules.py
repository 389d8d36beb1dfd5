"""Rule table: file extension to ordered command templates."""

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from sentinel_core.models import ResolvedCommand

FILE_PLACEHOLDER = "{file}"


class RuleTable(Mapping[str, tuple[str, ...]]):
    """Immutable mapping of extension (no leading dot) to command templates.

    Keys are case-sensitive. The order of templates for an extension is the
    order they run in; the order of extensions is irrelevant.
    """

    def __init__(self, rules: Mapping[str, Iterable[str]] | None = None):
        """Initialize rule table.

        Args:
            rules: Mapping of extension -> command templates
        """
        self._rules: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {ext: tuple(templates) for ext, templates in (rules or {}).items()}
        )

    def __getitem__(self, extension: str) -> tuple[str, ...]:
        return self._rules[extension]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleTable({dict(self._rules)!r})"

    def templates_for(self, path: str | Path) -> tuple[str, ...]:
        """Get the command templates configured for a file.

        Args:
            path: Path of the changed file

        Returns:
            Templates in run order, or an empty tuple if nothing matches
        """
        extension = extension_of(path)
        if not extension:
            return ()
        return self._rules.get(extension, ())

    @property
    def command_count(self) -> int:
        """Total number of templates across all extensions."""
        return sum(len(templates) for templates in self._rules.values())


def extension_of(path: str | Path) -> str:
    """Return the extension of ``path`` without its dot ('' if there is none).

    Dotfiles such as ``.bashrc`` have no extension.
    """
    return Path(path).suffix[1:]


def resolve_command(template: str, path: str | Path) -> ResolvedCommand | None:
    """Substitute ``{file}`` and split the result on whitespace.

    No shell quoting is supported: a path containing spaces is split like any
    other text.

    Args:
        template: Command template
        path: File path to substitute

    Returns:
        ResolvedCommand, or None if the template is blank after substitution
    """
    parts = template.replace(FILE_PLACEHOLDER, str(path)).split()
    if not parts:
        return None
    return ResolvedCommand(program=parts[0], args=tuple(parts[1:]))
