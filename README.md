# zinx

zinx is a small TCP server framework built on threads. Clients and servers
exchange framed messages. The server sends each incoming message to a router
chosen by its message id. A pool of worker threads runs the routers.

## Wire format

Each message is an 8-byte head followed by its payload:

```
| data length (uint32, little endian) | message id (uint32, little endian) | data |
```

`zinx.datapack.DataPack` works with this format:

- `pack(message)` returns the frame for a `zinx.message.Message`.
- `unpack(head)` decodes a head into a `Message` whose payload is still empty.
- `read_message(reader)` reads one whole message from a binary stream. It raises
  `EOFError` if the stream ends before the message is complete.
- `head_len` is always 8.

If a head declares a payload larger than `max_package_size`, `unpack` raises
`PackageTooLargeError`, which is a subclass of `DataPackError`. A
`max_package_size` of 0 turns this check off.

## Writing a server

```python
from zinx.config import load_config
from zinx.router import BaseRouter
from zinx.server import Server


class EchoRouter(BaseRouter):
    def handle(self, request):
        request.connection.send_msg(request.msg_id, request.data)


config = load_config("conf/zinx.json")
server = Server("echo", config)
server.add_router(0, EchoRouter())
server.set_on_conn_start(lambda conn: conn.set_property("greeted", True))
server.serve()
```

- **Routers.** A router subclasses `zinx.router.BaseRouter` and overrides any of
  `pre_handle`, `handle` and `post_handle`. They are called in that order for
  every request. If you register two routers for the same message id,
  `add_router` raises `zinx.msghandler.DuplicateRouterError`. A message whose id
  has no router is logged and dropped.
- **Requests.** A `zinx.request.Request` has `connection`, `message`, and the
  properties `msg_id` and `data`.
- **Connections.** A `zinx.connection.Connection` has `conn_id`, `remote_addr`
  and `is_closed`. Its `send_msg(msg_id, data)` queues a framed reply, and
  raises `ConnectionClosedError` once the connection has stopped.
  `set_property`, `get_property` and `remove_property` store values on the
  connection. `get_property` raises `PropertyNotFoundError` when the key is
  unknown.
- **Hooks.** `set_on_conn_start` sets a hook that runs after a connection starts.
  `set_on_conn_stop` sets a hook that runs before a connection closes.
- **Running and stopping.**
  - `start()` binds the listener and accepts clients in the background.
  - `address` gives the bound `(host, port)`.
  - `serve()` starts the server and blocks until `stop()` is called or the
    process is interrupted.
  - `stop()` closes every connection and stops the worker pool.
  - `Server` also works as a context manager: it starts on entry and stops on
    exit.
- **Worker pool.** Each request goes to the worker numbered
  `conn_id % WorkerPoolSize`, so the requests of one connection are handled in
  order. When `WorkerPoolSize` is `0`, each request runs on a thread of its own
  instead.
- **Connection limit.** Connections beyond `MaxConn` are closed as soon as they
  are accepted.

`zinx.connmanager.ConnectionManager` keeps track of a server's live connections.
It is available as `server.conn_manager`. `get(conn_id)` raises
`ConnectionNotFoundError` when no connection has that id.

Diagnostics go through the standard `logging` module, under loggers named after
the `zinx` modules.

## Configuration

`zinx.config.load_config(path)` starts from the built-in defaults. If the JSON
file at `path` exists, its values override the defaults. The default path is
`conf/zinx.json`, and a missing file is ignored. Keys are matched without regard
to case, and keys that are not recognised are skipped. A value of the wrong type
raises `TypeError`. `Server(name, config)` calls `load_config()` itself when
`config` is not given.

| Key | Attribute | Default |
| --- | --- | --- |
| `Name` | `name` | `ZinxServerApp` |
| `Host` | `host` | `0.0.0.0` |
| `TcpPort` | `tcp_port` | `8999` |
| `Version` | `version` | `v1.8.0` |
| `MaxConn` | `max_conn` | `1024` |
| `MaxPackageSize` | `max_package_size` | `4096` |
| `WorkerPoolSize` | `worker_pool_size` | `10` |
| `MaxWorkerTaskLen` | `max_worker_task_len` | `1024` |

`MaxWorkerTaskLen` sets the capacity of each worker's task queue.

`zinx.log` provides a `Logger` settings object with `level`, `output` and
`format`. You build one with `new_logger(with_level(...), with_output(...),
with_format(...))`. It only holds these settings and does not write any log
output itself.

## Demo

Start the demo server:

```
zinx-demo-server
```

The server replies to message id 0 with `ping...ping...ping ` and to message
id 1 with `Hello, Welcome to Zinx!`. When a client connects, the server sends it
message 202 (`DoConnectionBegin`) and stores a few example properties on the
connection. When the connection closes, the server prints those properties.

The server accepts these options:

- `--config`: a JSON configuration file.
- `--host`: overrides the listening address.
- `--port`: overrides the listening port.

In another terminal, run a client that sends messages and prints the replies:

```
zinx-demo-client
```

The client accepts these options:

- `--host` and `--port`: the server to connect to. The defaults are
  `127.0.0.1:8999`.
- `--msg-id`: the message id to send.
- `--text`: the message text.
- `--count`: how many exchanges to make. By default the client runs forever.
- `--interval`: seconds between exchanges.

Each exchange sends one message and prints the next message that arrives. That
message may be the connection greeting rather than the reply to the message just
sent.

## What it does not do

There is no client library beyond `zinx.demo_client`'s `exchange` and
`run_client` helpers. A client that the server rejects for exceeding `MaxConn`
gets no error message; its connection is simply closed.