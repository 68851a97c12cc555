"""
Locale helpers for the session helpers.

Usage:
    import i18n
    i18n.read_locale('/etc/default/locale')   # → "fr_FR"
    i18n.default_locale_tag()                 # → "fr_FR", or "en_US"
    kf = i18n.KeyFile.load('/etc/deepin-version')
    kf.get_locale_string('Release', 'Type')   # → "Professional" / "专业版"
"""

import configparser
import os
import re

from errors import NotFoundError, ParseError
from fileutils import sysroot_path

DEFAULT_LANG = 'en_US'
DEFAULT_LOCALE_FILE = sysroot_path('/etc/default/locale')

_LANG_LINE = re.compile(r'^LANG=(.*)')


def strip_codeset(code: str) -> str:
    """Drop the codeset suffix: "es_ES.UTF-8" → "es_ES"."""
    return code.split('.')[0]


def read_locale(config: str = DEFAULT_LOCALE_FILE) -> str:
    """Return the locale tag from the first LANG= line of *config*.

    An empty string means the file has no LANG= line.  Only an unreadable
    file is an error.
    """
    try:
        with open(config, encoding='utf-8', errors='ignore') as f:
            for line in f:
                match = _LANG_LINE.match(line.rstrip('\n'))
                if match:
                    return strip_codeset(match.group(1))
    except OSError as e:
        raise NotFoundError(f"Cannot read locale file '{config}': {e.strerror}")
    return ''


def default_locale_tag(config: str = DEFAULT_LOCALE_FILE) -> str:
    """Like read_locale(), but falls back to en_US instead of failing."""
    try:
        tag = read_locale(config)
    except NotFoundError:
        tag = ''
    return tag or DEFAULT_LANG


def _detect_locale() -> str:
    """Detect the message locale from the environment, most specific first."""
    for var in ('LANGUAGE', 'LC_ALL', 'LC_MESSAGES', 'LANG'):
        value = os.environ.get(var, '')
        if value:
            # LANGUAGE may hold a colon separated priority list
            return value.split(':')[0]
    return ''


def _locale_candidates(code: str) -> list:
    """GLib's variant order for lang_TERRITORY.CODESET@MODIFIER.

    Most specific first, dropping the codeset before the territory and the
    territory before the modifier: sr_RS@latin → sr_RS@latin, sr@latin,
    sr_RS, sr.
    """
    if not code or code in ('C', 'POSIX'):
        return []
    rest, _, modifier = code.partition('@')
    rest, _, codeset = rest.partition('.')
    lang, _, territory = rest.partition('_')
    if not lang:
        return []

    # bit 0: codeset, bit 1: territory, bit 2: modifier
    parts = (
        ('.' + codeset) if codeset else '',
        ('_' + territory) if territory else '',
        ('@' + modifier) if modifier else '',
    )
    mask = sum(1 << i for i, part in enumerate(parts) if part)
    candidates = []
    for i in range(mask, -1, -1):
        if i & ~mask:
            continue
        candidates.append(
            lang
            + (parts[1] if i & 2 else '')
            + (parts[0] if i & 1 else '')
            + (parts[2] if i & 4 else '')
        )
    return candidates


class KeyFile:
    """Translation-aware reader for desktop-entry style key files.

    Keeps every translated variant ("Type[zh_CN]=...") so localized values can
    be looked up for any locale after loading.
    """

    def __init__(self):
        self._parser = configparser.ConfigParser(
            delimiters=('=',),
            comment_prefixes=('#',),
            interpolation=None,
            strict=False,
        )
        # Keys are case sensitive
        self._parser.optionxform = str

    @classmethod
    def load(cls, path: str) -> 'KeyFile':
        kf = cls()
        try:
            with open(path, encoding='utf-8') as f:
                kf._parser.read_file(f, source=path)
        except FileNotFoundError:
            raise NotFoundError(f"No such file or directory: '{path}'")
        except configparser.Error as e:
            raise ParseError(f"Invalid key file '{path}': {e}")
        except UnicodeDecodeError as e:
            raise ParseError(f"Key file '{path}' is not valid UTF-8: {e}")
        return kf

    def get_string(self, group: str, key: str) -> str:
        if not self._parser.has_section(group):
            raise ParseError(f"Key file does not have group '{group}'")
        if not self._parser.has_option(group, key):
            raise ParseError(f"Key file does not have key '{key}' in group '{group}'")
        return self._parser.get(group, key).strip()

    def get_locale_string(self, group: str, key: str, locale: str = None) -> str:
        """Return the value of *key* translated for *locale*.

        The current message locale is used when *locale* is None.  Falls back
        to the untranslated value when no translation matches.
        """
        if locale is None:
            locale = _detect_locale()
        for code in _locale_candidates(locale):
            localized = f'{key}[{code}]'
            if self._parser.has_option(group, localized):
                return self._parser.get(group, localized).strip()
        return self.get_string(group, key)
