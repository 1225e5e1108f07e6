# vpnswitch

vpnswitch turns an OpenVPN connection on and off from a physical switch.
A device on a serial port reports the switch position as the lines
`Turn On` and `Turn Off`; a control daemon reads those lines, starts or stops
`openvpn` with a randomly chosen configuration file, writes what happened to a
daily-rotated log file and tells a status listener, which shows a desktop
notification with the connection state and the current public IP address.

## Installation

```
pip install vpnswitch
```

For running the tests:

```
pip install "vpnswitch[test]"
pytest
```

## The two commands

### `vpnswitch-notify`

The status listener. Start it first, in your desktop session:

```
vpnswitch-notify [--socket PATH]
```

It listens on the Unix socket `/tmp/vpn-status.sock` (or `--socket`) and
understands these messages:

| Message                | Effect                                                          |
|------------------------|-----------------------------------------------------------------|
| `STATUS Connected`     | notification "VPN Connected. IP: ..." with the public address   |
| `STATUS Disconnected`  | notification "VPN Disconnected. IP: ..."                        |
| `FAIL - <message>`     | critical notification "VPN Handler Error" with the message      |

The public address is looked up at `api.ipify.org`. Notifications are shown
with `notify-send` and closed again after five seconds through `gdbus`, so
both must be installed. A `STATUS` message with an unknown state is printed
and ignored; a message with an unknown command makes the listener exit.

### `vpnswitch-daemon`

The control daemon:

```
vpnswitch-daemon [--control-socket PATH] [--status-socket PATH]
                 [--log-file PATH] [--port DEVICE]
```

Defaults: control socket `/tmp/vpn-control.sock`, status socket
`/tmp/vpn-status.sock`, log file `~/.vpnswitch/log.txt`, serial device
`/dev/ttyACM0`.

On start it rotates the log file if it is missing or more than 24 hours old,
connects to the status listener (up to ten attempts, a quarter second apart,
exiting if none succeeds), and then listens on the control socket. It accepts
three commands:

* `status` – reports whether the serial reader is running
* `start` – starts reading the switch from the serial port at 57600 baud
* `stop` – stops reading the switch and shuts OpenVPN down if it is running

Any other command is answered with `Received invalid command!`.

OpenVPN configurations are taken from `~/VPN` and all its subdirectories;
`~/VPN/auth.txt` is passed to `--auth-user-pass`. If the serial port sends
nothing for ten seconds the reader stops with an error, which is reported on
the next `stop`.

Once an hour the daemon checks whether the log needs rotating; a failure is
logged and forwarded to the status listener as a `FAIL - ...` message.

Sending a command from Python:

```python
import socket

with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
    sock.connect("/tmp/vpn-control.sock")
    sock.sendall(b"start")
    print(sock.recv(1024).decode())
```

## Using the parts as a library

* `vpnswitch.config.ConfigFiles(main_dir, auth)` – `init()` collects every file
  below `main_dir` (skipping files named `auth.txt`); `random_file_path()`
  returns one at random and raises `IndexError` if none was found.
* `vpnswitch.handler.Handler(config, command)` – `start()` runs
  `<command> --config <file> --auth-user-pass <auth>` (command `openvpn` by
  default) and raises `FileExistsError` if a process is already running;
  `stop()` kills it and does nothing if none is running.
* `vpnswitch.logger.Logger(log_path)` – `log(msg)` appends
  `[YYYY-MM-DD HH:MM:SS] > msg` to an existing log whose first line is
  `LOG CREATED AT: <timestamp>`; `rotate_needed()` tells whether the file is
  missing or older than 24 hours, `rotate_logs()` starts a new file, and
  `update()` does both.
* `vpnswitch.notifier.Notifier(socket_path)` – `send_message(message)` writes to
  the status listener's socket, reconnecting when a write fails; usable as a
  context manager, or closed with `close()`.
* `vpnswitch.daemon.ControlDaemon(logger, notifier, port_name)` –
  `handle_command(command, stream)` and `serve(socket_path)`.
* `vpnswitch.status_listener.parse_message(text)` – turns a raw listener message
  into a `StatusMessage(kind, connected, detail)`; `handle_message(text)` and
  `serve(socket_path)` run the listener.

Errors from reading the log header are raised as
`vpnswitch.errors.LoggerError` and its subclasses `DateTimeParseError` and
`MissingPrefixError`.

## What is not included

The package does not contain the program for the device on the serial port.
Any device that writes the lines `Turn On` and `Turn Off` at 57600 baud will
do.

## Requirements

* Linux (Unix domain sockets, `openvpn` on the `PATH`)
* `notify-send` and `gdbus` for the notifications
* a serial device that writes `Turn On` / `Turn Off` lines