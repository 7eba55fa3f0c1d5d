"""Pytest configuration for byoc_reconciler tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from byoc_reconciler.retry.backoff import BackoffPolicy


@pytest.fixture
def fast_backoff():
    """Millisecond backoff so poll loops finish quickly."""
    return BackoffPolicy(min_wait=0.001, max_wait=0.005)
