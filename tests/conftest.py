from __future__ import annotations

import jsonfile


def reset_jsonfile_state() -> None:
    """Reset the default class registry and open-file list between tests."""
    jsonfile._reset_default_registry()


import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_state() -> None:
    reset_jsonfile_state()
