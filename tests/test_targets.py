import pytest

from termview.errors import ResolveError
from termview.models import Target
from termview.targets import resolve, resolve_all


def test_directory_expansion_filters_and_sorts(tmp_path):
    for name in ("b.png", "a.svg", "c.xyz"):
        (tmp_path / name).write_bytes(b"x")
    (tmp_path / "sub.png").mkdir()
    targets = resolve(str(tmp_path))
    assert [t.path for t in targets] == [str(tmp_path / "a.svg"), str(tmp_path / "b.png")]
    assert not any(t.is_url for t in targets)


def test_existing_file_is_single_target(tmp_path):
    path = tmp_path / "notes.unknownext"
    path.write_text("hi")
    assert resolve(str(path)) == [Target(str(path))]


@pytest.mark.parametrize("argument", ["https://example.com/a?b=c", "WIFI:S:home;T:WPA;P:secret;;"])
def test_url_targets(argument):
    assert resolve(argument) == [Target(argument, is_url=True)]


def test_missing_argument(tmp_path):
    missing = str(tmp_path / "nope.png")
    with pytest.raises(ResolveError) as exc:
        resolve(missing)
    assert exc.value.code == "OPEN"
    assert "unable to open" in str(exc.value)


def test_resolve_all_keeps_order(tmp_path):
    present = tmp_path / "x.png"
    present.write_bytes(b"x")
    results = list(resolve_all([str(tmp_path / "missing"), str(present)]))
    assert isinstance(results[0][1], ResolveError)
    assert results[1] == (str(present), [Target(str(present))])
