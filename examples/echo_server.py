"""TCP echo server on top of AsyncioRuntime.

Accepted connections arrive on an asyncio queue. An acceptor task moves
them into a channel served by a fixed pool of handler tasks. Socket I/O is
done with ``Await`` so a task waiting on the network does not block the
others.

Run with: python examples/echo_server.py [port] [handlers]
Then:     nc 127.0.0.1 8765
"""

import asyncio
import logging
import sys

from cokernel import AsyncioRuntime, Await, Channel, Spawn, WaitGroup

logger = logging.getLogger("echo_server")


def echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    peer = writer.get_extra_info("peername")
    logger.info("connection from %s", peer)
    try:
        while line := (yield Await(reader.readline())):
            writer.write(line)
            yield Await(writer.drain())
    except ConnectionError as exc:
        logger.info("connection from %s dropped: %s", peer, exc)
    finally:
        writer.close()
    logger.info("connection from %s closed", peer)


def handler(connections: Channel, wg: WaitGroup):
    with wg.guard():
        while (conn := (yield connections.read())) is not None:
            yield from echo(*conn)


def acceptor(accepted: asyncio.Queue, connections: Channel):
    while True:
        conn = yield Await(accepted.get())
        if conn is None:
            break
        yield connections.write(conn)
    connections.close()


def main(port: int = 8765, handlers: int = 4, started: asyncio.Future | None = None):
    accepted: asyncio.Queue = asyncio.Queue()
    connections = Channel(handlers)
    wg = WaitGroup()

    async def on_client(reader, writer):
        await accepted.put((reader, writer))

    server = yield Await(asyncio.start_server(on_client, "127.0.0.1", port))
    port = server.sockets[0].getsockname()[1]
    logger.info("listening on 127.0.0.1:%d with %d handlers", port, handlers)
    if started is not None:
        # lets an embedding coroutine find the bound port and stop the server
        started.set_result(server)

    wg.add(handlers)
    for index in range(handlers):
        yield Spawn(handler, connections, wg, name=f"handler-{index}")
    yield Spawn(acceptor, accepted, connections, name="acceptor")

    try:
        yield Await(server.serve_forever())
    except asyncio.CancelledError:
        logger.info("server stopped")
    finally:
        server.close()
        accepted.put_nowait(None)
    yield wg.wait()
    return "shutdown"


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = [int(value) for value in sys.argv[1:3]]
    try:
        print(AsyncioRuntime().run(main, *args))
    except KeyboardInterrupt:
        pass
