import threading
import time

import pytest

from luxcars.pool import map_with_concurrency


def test_results_follow_input_order():
    def work(item, idx):
        time.sleep(0.01 * (5 - idx))
        return item * 10

    assert map_with_concurrency([1, 2, 3, 4, 5], 3, work) == [10, 20, 30, 40, 50]


def test_concurrency_is_bounded():
    lock = threading.Lock()
    state = {'now': 0, 'peak': 0}

    def work(item, idx):
        with lock:
            state['now'] += 1
            state['peak'] = max(state['peak'], state['now'])
        time.sleep(0.02)
        with lock:
            state['now'] -= 1
        return idx

    map_with_concurrency(list(range(10)), 2, work)
    assert state['peak'] <= 2


def test_empty_and_zero_concurrency():
    assert map_with_concurrency([], 4, lambda i, n: i) == []
    assert map_with_concurrency(['a'], 0, lambda i, n: i.upper()) == ['A']


def test_worker_error_propagates():
    def work(item, idx):
        if item == 2:
            raise RuntimeError('boom')
        return item

    with pytest.raises(RuntimeError, match='boom'):
        map_with_concurrency([1, 2, 3], 2, work)
