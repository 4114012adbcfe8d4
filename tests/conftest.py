from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from typegen import logging as tlog

from .abi_fixtures import ERC20_ABI


@pytest.fixture(autouse=True)
def _clean_log_context():
    tlog.clear_context()
    yield
    tlog.clear_context()


@pytest.fixture
def erc20_abi() -> List[Dict[str, Any]]:
    return json.loads(json.dumps(ERC20_ABI))


@pytest.fixture
def erc20_text(erc20_abi) -> str:
    return json.dumps(erc20_abi)
