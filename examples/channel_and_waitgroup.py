"""Fan-out / fan-in with Channel and WaitGroup.

This example demonstrates a small worker pool built on cooperative tasks:
- A producer writes jobs into a buffered channel and closes it
- Several workers read jobs until the channel reports closed (None)
- A WaitGroup tells the main task when every worker has finished
- Results flow back through a second, unbuffered channel

Run with: python examples/channel_and_waitgroup.py
"""

from cokernel import Channel, Spawn, WaitGroup, Yield, run


# ============================================================================
# Step 1: Producer
# ============================================================================


def producer(jobs: Channel, count: int):
    for job in range(count):
        yield jobs.write(job)
    jobs.close()


# ============================================================================
# Step 2: Workers
# ============================================================================


def worker(name: str, jobs: Channel, results: Channel, wg: WaitGroup):
    with wg.guard():
        while (job := (yield jobs.read())) is not None:
            # give other workers a turn between jobs
            yield Yield()
            yield results.write((name, job, job * job))


def closer(results: Channel, wg: WaitGroup):
    yield wg.wait()
    results.close()


# ============================================================================
# Step 3: Main task
# ============================================================================


def main(workers: int = 3, count: int = 10):
    jobs = Channel(2)
    results = Channel(0)
    wg = WaitGroup()

    yield Spawn(producer, jobs, count)
    wg.add(workers)
    for index in range(workers):
        yield Spawn(worker, f"worker-{index}", jobs, results, wg)
    yield Spawn(closer, results, wg)

    collected = []
    while (item := (yield results.read())) is not None:
        collected.append(item)
    return collected


if __name__ == "__main__":
    outcome = run(main)
    for name, job, square in sorted(outcome.unwrap(), key=lambda item: item[1]):
        print(f"{name:>9}: {job:>2} -> {square}")
