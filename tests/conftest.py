import textwrap

import pytest


@pytest.fixture
def write_project(tmp_path):
    """Write ``{relative path: source}`` below a fresh project directory."""

    def write(files, name="proj"):
        root = tmp_path / name
        root.mkdir(exist_ok=True)
        for relpath, source in files.items():
            path = root / relpath
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return root

    return write
