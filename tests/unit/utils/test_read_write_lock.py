import threading

from assistant_core.utils.locks import ReadWriteLock


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(3, timeout=2.0)

    def reader():
        with lock.read_locked():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    # All three parties meet only if both readers hold the lock at once
    with lock.read_locked():
        inside.wait()
    for t in threads:
        t.join()


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    reader_done = threading.Event()

    def reader():
        with lock.read_locked():
            reader_done.set()

    with lock.write_locked():
        t = threading.Thread(target=reader)
        t.start()
        assert not reader_done.wait(0.1)

    assert reader_done.wait(2.0)
    t.join()


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    order = []
    lock.acquire_read()

    writer = threading.Thread(target=lambda: (lock.acquire_write(), order.append("w"), lock.release_write()))
    writer.start()
    # Give the writer time to queue up behind the held read lock
    threading.Event().wait(0.05)

    reader = threading.Thread(target=lambda: (lock.acquire_read(), order.append("r"), lock.release_read()))
    reader.start()
    threading.Event().wait(0.05)
    assert order == []

    lock.release_read()
    writer.join(2.0)
    reader.join(2.0)
    assert order == ["w", "r"]
