import math

import pytest
from pydantic import ValidationError

from work_tree import RetryPolicy, TimeoutPolicy, normalize_retry, normalize_timeout


def test_bare_retry_count_normalizes_to_fixed_policy():
    policy = normalize_retry(3)
    assert policy.max_retries == 3
    assert policy.max_attempts == 4
    assert policy.delay == 0
    assert policy.backoff == "fixed"
    assert policy.backoff_multiplier == 2
    assert policy.max_delay == math.inf
    assert policy.attempt_timeout is None


def test_retry_mapping_and_model_pass_through():
    policy = normalize_retry({"max_retries": 2, "delay": 10, "backoff": "exponential"})
    assert isinstance(policy, RetryPolicy)
    assert policy.backoff == "exponential"
    assert normalize_retry(policy) is policy
    assert normalize_retry(None) is None


@pytest.mark.parametrize("value", [True, "3", 1.5])
def test_retry_rejects_unsupported_values(value):
    with pytest.raises(TypeError):
        normalize_retry(value)


def test_retry_validation_errors():
    with pytest.raises(ValidationError):
        RetryPolicy(max_retries=-1)
    with pytest.raises(ValidationError):
        RetryPolicy(max_retries=1, backoff="linear")
    with pytest.raises(ValidationError):
        RetryPolicy(max_retries=1, attempt_timeout=0)


def test_fixed_delay_is_constant():
    policy = RetryPolicy(max_retries=5, delay=15)
    assert [policy.delay_for(attempt) for attempt in (1, 2, 3)] == [15, 15, 15]


def test_exponential_delay_is_capped():
    policy = RetryPolicy(max_retries=3, delay=20, backoff="exponential", backoff_multiplier=2, max_delay=50)
    assert [policy.delay_for(attempt) for attempt in (1, 2, 3)] == [20, 40, 50]


def test_exponential_delay_clamps_when_growth_overflows():
    policy = RetryPolicy(max_retries=2000, delay=1, backoff="exponential", max_delay=5)
    assert policy.delay_for(1100) == 5

    uncapped = RetryPolicy(max_retries=2000, delay=1, backoff="exponential", backoff_multiplier=10)
    assert uncapped.delay_for(400) == math.inf


def test_zero_delay_never_waits():
    policy = RetryPolicy(max_retries=3, backoff="exponential")
    assert policy.delay_for(3) == 0


def test_timeout_normalization():
    assert normalize_timeout(None) is None
    assert normalize_timeout(250).ms == 250
    hook = lambda ctx: None  # noqa: E731
    policy = normalize_timeout({"ms": 10, "on_timeout": hook})
    assert policy.on_timeout is hook
    assert normalize_timeout(policy) is policy
    with pytest.raises(ValidationError):
        TimeoutPolicy(ms=0)
    with pytest.raises(TypeError):
        normalize_timeout(False)
