from concurrent.futures import ThreadPoolExecutor

from dealdispo.rate_limiter import check_rate_limit, release_hit


def test_concurrent_checks_never_admit_past_the_limit():
    with ThreadPoolExecutor(max_workers=10) as pool:
        results = list(pool.map(lambda _: check_rate_limit("login:10.0.0.1", 3, 300), range(10)))

    allowed = [result for result in results if result[0]]
    assert len(allowed) == 3
    assert sorted(count for _, count, _ in allowed) == [1, 2, 3]


def test_released_hit_frees_a_slot():
    for _ in range(3):
        assert check_rate_limit("login:10.0.0.2", 3, 300)[0]
    assert not check_rate_limit("login:10.0.0.2", 3, 300)[0]

    assert release_hit("login:10.0.0.2") == 2
    allowed, count, ttl = check_rate_limit("login:10.0.0.2", 3, 300)
    assert allowed
    assert count == 3
    assert 0 < ttl <= 300


def test_denied_checks_are_not_counted():
    for _ in range(5):
        check_rate_limit("login:10.0.0.3", 2, 300)
    assert release_hit("login:10.0.0.3") == 1


def test_release_of_unknown_key_is_harmless():
    assert release_hit("login:10.0.0.4") == 0


def test_keys_are_counted_separately():
    assert check_rate_limit("login:10.0.0.5", 1, 300)[0]
    assert not check_rate_limit("login:10.0.0.5", 1, 300)[0]
    assert check_rate_limit("login:10.0.0.6", 1, 300)[0]
