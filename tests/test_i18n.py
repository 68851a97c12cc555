import pytest

import i18n
from errors import NotFoundError, ParseError

DEEPIN_VERSION = """\
[Release]
Version=20.3
Type=Professional
Type[zh_CN]=专业版
Type[de]=Professionell
"""


@pytest.mark.parametrize("content, expected", [
    ("LANG=fr_FR.UTF-8\n", "fr_FR"),
    ("LANG=en_US\n", "en_US"),
    ("LANGUAGE=zh_CN:zh\nLANG=zh_CN.UTF-8\n", "zh_CN"),
    ("# comment\nLC_TIME=de_DE.UTF-8\nLANG=es_ES.UTF-8\nLANG=it_IT.UTF-8\n", "es_ES"),
    (" LANG=pt_BR.UTF-8\n", ""),
    ("LC_ALL=C\n", ""),
    ("", ""),
])
def test_read_locale(write_file, content, expected):
    path = write_file("etc/default/locale", content)
    assert i18n.read_locale(str(path)) == expected


def test_read_locale_is_idempotent(write_file):
    path = write_file("locale", "LANG=ja_JP.eucJP\n")
    assert i18n.read_locale(str(path)) == i18n.read_locale(str(path)) == "ja_JP"


def test_read_locale_missing_file(tmp_path):
    with pytest.raises(NotFoundError):
        i18n.read_locale(str(tmp_path / "nope"))


def test_default_locale_tag_fallbacks(tmp_path, write_file):
    assert i18n.default_locale_tag(str(tmp_path / "nope")) == "en_US"
    empty = write_file("locale", "LC_ALL=C\n")
    assert i18n.default_locale_tag(str(empty)) == "en_US"
    french = write_file("locale.fr", "LANG=fr_FR.UTF-8\n")
    assert i18n.default_locale_tag(str(french)) == "fr_FR"


@pytest.mark.parametrize("locale, expected", [
    ("zh_CN.UTF-8", "专业版"),
    ("de_DE.UTF-8", "Professionell"),
    ("fr_FR", "Professional"),
    ("C", "Professional"),
    ("", "Professional"),
])
def test_key_file_locale_string(write_file, locale, expected):
    kf = i18n.KeyFile.load(str(write_file("deepin-version", DEEPIN_VERSION)))
    assert kf.get_string("Release", "Version") == "20.3"
    assert kf.get_locale_string("Release", "Type", locale) == expected


def test_key_file_uses_environment_locale(write_file, monkeypatch):
    for var in ("LANGUAGE", "LC_ALL", "LC_MESSAGES"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LANG", "zh_CN.UTF-8")
    kf = i18n.KeyFile.load(str(write_file("deepin-version", DEEPIN_VERSION)))
    assert kf.get_locale_string("Release", "Type") == "专业版"


def test_key_file_errors(tmp_path, write_file):
    with pytest.raises(NotFoundError):
        i18n.KeyFile.load(str(tmp_path / "missing"))
    with pytest.raises(ParseError):
        i18n.KeyFile.load(str(write_file("headless", "Version=1\n")))

    kf = i18n.KeyFile.load(str(write_file("partial", "[Release]\nVersion=1\n")))
    with pytest.raises(ParseError):
        kf.get_locale_string("Release", "Type", "en_US")
    with pytest.raises(ParseError):
        kf.get_string("Other", "Version")


def test_key_file_not_utf8_is_a_parse_error(tmp_path):
    path = tmp_path / "deepin-version"
    path.write_bytes(b"[Release]\nVersion=20.3\nType=\xff\xfe\n")
    with pytest.raises(ParseError):
        i18n.KeyFile.load(str(path))


@pytest.mark.parametrize("locale, expected", [
    ("sr_RS@latin", ["sr_RS@latin", "sr@latin", "sr_RS", "sr"]),
    ("zh_CN.UTF-8", ["zh_CN.UTF-8", "zh_CN", "zh.UTF-8", "zh"]),
    ("de", ["de"]),
    ("POSIX", []),
])
def test_locale_candidates_follow_glib_order(locale, expected):
    assert i18n._locale_candidates(locale) == expected


@pytest.mark.parametrize("locale, expected", [
    ("sr_RS@latin", "Profesionalna"),
    ("sr_RS.UTF-8", "Професионална"),
])
def test_key_file_modifier_variants(write_file, locale, expected):
    kf = i18n.KeyFile.load(str(write_file("deepin-version", (
        "[Release]\n"
        "Version=20.3\n"
        "Type=Professional\n"
        "Type[sr]=Професионална\n"
        "Type[sr@latin]=Profesionalna\n"
    ))))
    assert kf.get_locale_string("Release", "Type", locale) == expected
