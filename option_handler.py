import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

_LOGGER = logging.getLogger("option_handler")

class OptionException(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message

class OptionSpecException(OptionException):
    pass

class OptionParseException(OptionException):
    def __init__(self, message: str, option: str, position: int):
        super().__init__(message)
        self.option = option
        self.position = position

class OptionExistsError(OptionSpecException):
    def __init__(self, option: str):
        super().__init__(f"Option ‘{option}’ already exists")
        self.option = option

class InvalidOptionFormatError(OptionSpecException):
    def __init__(self, option: str, reason: str):
        super().__init__(f"Invalid option format ‘{option}’: {reason}")
        self.option = option

class ArgumentConflict(OptionParseException):
    def __init__(self, option: str, argument: str, position: int):
        super().__init__(
            f"Option ‘{option}’ does not take an argument, but argument ‘{argument}’ given",
            option,
            position,
        )
        self.argument = argument

class MissingArgument(OptionParseException):
    def __init__(self, option: str, position: int):
        super().__init__(f"Option ‘{option}’ is missing an argument", option, position)

class ArgumentType(Enum):
    NONE = 0      # flag only, never takes values
    REQUIRED = 1  # one or more values
    OPTIONAL = 2  # zero or more values

    @classmethod
    def coerce(cls, arity: Union['ArgumentType', str]) -> 'ArgumentType':
        if isinstance(arity, cls):
            return arity
        if isinstance(arity, str) and arity.upper() in cls.__members__:
            return cls[arity.upper()]
        raise InvalidOptionFormatError(str(arity), "unknown argument type")

@dataclass(frozen=True)
class OptionSpec:
    short_name: Optional[str]
    long_name: str
    arity: ArgumentType = ArgumentType.NONE
    multiple: bool = False

    def matches(self, token: str) -> bool:
        if token.startswith("--"):
            return token[2:] == self.long_name
        return (
            self.short_name is not None
            and len(token) == 2
            and token[0] == "-"
            and token[1] == self.short_name
        )

def is_flag(token: str) -> bool:
    """
    Whether the token has the shape of a flag. Anything else, the bare "-"
    included, is a value.
    """
    return len(token) > 1 and token[0] == "-"

class Handler:
    """
    Option registry and result store over a fixed token sequence.

    Each call to add_option scans the whole token sequence for that one option
    and records what it captured; the get_* methods read the recorded results.

        h = Handler(["-m", "fast", "--help"])
        h.add_option("m", "mode", ArgumentType.REQUIRED).add_option("h", "help")
        h.get_argument("mode")  # "fast"
    """

    def __init__(self, tokens: Iterable[str]):
        self.tokens: Tuple[str, ...] = tuple(tokens)
        self.options: List[OptionSpec] = []
        self.parsed: Dict[str, List[str]] = {}
        _LOGGER.debug("handler created with %d tokens", len(self.tokens))

    @classmethod
    def from_argv(cls, argv: Optional[List[str]] = None) -> 'Handler':
        if argv is None:
            argv = sys.argv
        return cls(argv[1:])

    @property
    def specs(self) -> Tuple[OptionSpec, ...]:
        return tuple(self.options)

    def spec(self, long_name: str) -> Optional[OptionSpec]:
        for option in self.options:
            if option.long_name == long_name:
                return option
        return None

    def add_option(self, short_name: Optional[str], long_name: str,
                   arity: Union[ArgumentType, str] = ArgumentType.NONE,
                   multiple: bool = False) -> 'Handler':
        option = self._declare(short_name, long_name, arity, multiple)

        try:
            values = self._scan(option)
        except OptionParseException as err:
            _LOGGER.debug("rejected %s: %s", option, err)
            raise

        # Only a successful scan reaches the registry.
        self.options.append(option)
        if values is not None:
            self.parsed[option.long_name] = values
        _LOGGER.debug("registered %s, matched=%s", option, values is not None)
        return self

    def _declare(self, short_name: Optional[str], long_name: str,
                 arity: Union[ArgumentType, str], multiple: bool) -> OptionSpec:
        if not isinstance(long_name, str) or not long_name:
            raise InvalidOptionFormatError(str(long_name), "long name must be a non-empty string")
        if long_name.startswith("-"):
            raise InvalidOptionFormatError(long_name, "long name must not start with '-'")

        if short_name == "":
            short_name = None
        if short_name is not None and (
                not isinstance(short_name, str) or len(short_name) != 1 or short_name == "-"):
            raise InvalidOptionFormatError(str(short_name), "short name must be one character other than '-'")

        for existing in self.options:
            if existing.long_name == long_name:
                raise OptionExistsError(long_name)
            if short_name is not None and existing.short_name == short_name:
                raise OptionExistsError(short_name)

        return OptionSpec(short_name, long_name, ArgumentType.coerce(arity), bool(multiple))

    def _scan(self, option: OptionSpec) -> Optional[List[str]]:
        """
        Walk the tokens once for option. Returns the captured values, or None
        when the option never appeared.
        """
        tokens = self.tokens
        values: Optional[List[str]] = None
        i = 0

        while i < len(tokens):
            if not is_flag(tokens[i]) or not option.matches(tokens[i]):
                i += 1
                continue

            position = i
            following = tokens[i + 1] if i + 1 < len(tokens) else None

            if option.arity is ArgumentType.NONE:
                if following is not None and not is_flag(following):
                    raise ArgumentConflict(option.long_name, following, position)
                if values is None:
                    values = []
                i += 1
                continue

            if option.arity is ArgumentType.REQUIRED:
                if following is None or is_flag(following):
                    raise MissingArgument(option.long_name, position)

            if values is None:
                values = []
            i += 1
            while i < len(tokens) and not is_flag(tokens[i]):
                if not values:
                    values.append(tokens[i])
                elif option.multiple:
                    values.append(tokens[i])
                else:
                    values[0] = tokens[i]
                i += 1

        return values

    def get_option(self, long_name: str) -> bool:
        return long_name in self.parsed

    def get_argument(self, long_name: str) -> str:
        values = self.parsed.get(long_name)
        if not values:
            return ""
        return values[0]

    def get_arguments(self, long_name: str) -> List[str]:
        return list(self.parsed.get(long_name, ()))

    def __contains__(self, long_name: str) -> bool:
        return self.get_option(long_name)
