"""Identifier derivation from file and package names."""

import re
from dataclasses import dataclass, field

# Letters and digits of any script; everything else separates words
ALPHANUMERIC_RUN = re.compile(r"[^\W_]+")
LEADING_SIGILS = re.compile(r"^[_$]+")
# "$1" and "$&" in a replacement written for JavaScript's String.replace
JS_REPLACEMENT_GROUP = re.compile(r"\$(\d+|&)")


class NamingConvention:
    """How binding names are derived from file and package names."""

    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    LOWERCASE = "lowercase"
    AS_IS = "as-is"

    ALL = (CAMEL_CASE, SNAKE_CASE, LOWERCASE, AS_IS)


def _is_boundary(run: str, index: int) -> bool:
    char = run[index]
    previous = run[index - 1]
    if char.isdigit():
        return False
    if previous.isdigit():
        return True
    if not char.isupper():
        return False
    if not previous.isupper():
        return True
    following = run[index + 1] if index + 1 < len(run) else ""
    return following.isalpha() and not following.isupper()


def split_words(text: str) -> list[str]:
    """Split a name into words: "myAwesome-file2" -> ["my", "Awesome", "file2"]."""
    words = []
    for run in ALPHANUMERIC_RUN.findall(text):
        start = 0
        for index in range(1, len(run)):
            if _is_boundary(run, index):
                words.append(run[start:index])
                start = index
        words.append(run[start:])
    return words


def _ordered_words(name: str) -> tuple[str, list[str]]:
    """Leading "_"/"$" run and the words, with leading digit-only words moved to the end."""
    prefix_match = LEADING_SIGILS.match(name)
    prefix = prefix_match.group(0) if prefix_match else ""

    words = split_words(name)
    leading_digits = []
    while words and words[0].isdigit():
        leading_digits.append(words.pop(0))
    return prefix, words + leading_digits


def get_proper_variable_name(name: str) -> str:
    """Turn a file or package name into a camel-case JavaScript identifier.

    Leading digit-only words move to the end, a leading "_" or "$" run is kept,
    and every word after the first gets an upper-case first letter.

    Examples:
        "my-awesome_file2" -> "myAwesomeFile2"
        "2fast" -> "fast2"
        "_private-helper" -> "_privateHelper"
    """
    prefix, words = _ordered_words(name)
    if not words:
        return prefix

    parts = [words[0]] + [word[0].upper() + word[1:] for word in words[1:]]
    return prefix + "".join(parts)


def _compile_predefined(pattern: str) -> tuple[re.Pattern, int] | None:
    """Compile a "/source/flags" key; None for keys that name one file or package."""
    if not pattern.startswith("/") or "/" not in pattern[1:]:
        return None
    source, flags = pattern[1:].rsplit("/", 1)
    options = 0
    if "i" in flags:
        options |= re.IGNORECASE
    if "m" in flags:
        options |= re.MULTILINE
    if "s" in flags:
        options |= re.DOTALL
    return re.compile(source, options), 0 if "g" in flags else 1


def _python_replacement(replacement: str) -> str:
    escaped = replacement.replace("\\", "\\\\")
    return JS_REPLACEMENT_GROUP.sub(
        lambda match: "\\g<0>" if match.group(1) == "&" else f"\\g<{match.group(1)}>", escaped
    )


@dataclass
class NamingOptions:
    """Naming convention plus explicit names for particular files or packages.

    Keys of predefined_names are either an exact name ("react-dom") or a
    "/regex/flags" pattern whose match is replaced with the value, "$1" style
    group references included.
    """

    convention: str = NamingConvention.CAMEL_CASE
    predefined_names: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.convention not in NamingConvention.ALL:
            raise ValueError(f"naming convention must be one of {list(NamingConvention.ALL)}, got {self.convention!r}")
        self._patterns = {}
        for key, value in self.predefined_names.items():
            try:
                compiled = _compile_predefined(key)
            except re.error as e:
                raise ValueError(f"Invalid predefined name pattern {key!r}: {e}") from e
            if compiled is not None:
                self._patterns[key] = (*compiled, _python_replacement(value))

    def predefined(self, name: str) -> str | None:
        """Explicit name for name; the first matching key of predefined_names wins."""
        for key, value in self.predefined_names.items():
            if key not in self._patterns:
                if key == name:
                    return value
                continue
            regex, count, replacement = self._patterns[key]
            if regex.search(name):
                return regex.sub(replacement, name, count=count)
        return None


def _snake_case(name: str) -> str:
    prefix, words = _ordered_words(name)
    return prefix + "_".join(word.lower() for word in words)


def _lowercase(name: str) -> str:
    prefix, words = _ordered_words(name)
    return prefix + "".join(word.lower() for word in words)


def get_variable_name(name: str, options: NamingOptions | None = None) -> str:
    """
    Binding name for a file or package name under the configured convention.

    Args:
        name: File name without extension, directory name, or package name
        options: Convention and predefined names; camelCase when omitted

    Raises:
        ValueError: If no identifier can be derived from name
    """
    options = options or NamingOptions()

    variable_name = options.predefined(name)
    if variable_name is None:
        if options.convention == NamingConvention.SNAKE_CASE:
            variable_name = _snake_case(name)
        elif options.convention == NamingConvention.LOWERCASE:
            variable_name = _lowercase(name)
        elif options.convention == NamingConvention.AS_IS and name.isidentifier():
            variable_name = name
        else:
            variable_name = get_proper_variable_name(name)

    if not variable_name or variable_name[0].isdigit():
        raise ValueError(f"Cannot derive an identifier from {name!r}")
    return variable_name
