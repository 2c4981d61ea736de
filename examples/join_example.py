"""Joining tasks and observing failures.

Shows how a parent task spawns children, waits for each with ``join()``
and gets either the child's return value or the exception it raised.

Run with: python examples/join_example.py
"""

from cokernel import Spawn, Yield, run


def compute(n: int):
    for _ in range(n):
        yield Yield()
    if n == 3:
        raise ValueError(f"refusing to compute {n}")
    return n * 10


def main():
    children = []
    for n in range(1, 5):
        children.append((yield Spawn(compute, n, name=f"compute-{n}")))

    report = {}
    for child in children:
        try:
            report[child.name] = (yield child.join())
        except ValueError as exc:
            report[child.name] = f"failed: {exc}"
    return report


if __name__ == "__main__":
    for name, value in run(main).unwrap().items():
        print(f"{name}: {value}")
