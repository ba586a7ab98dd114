"""Tests for ConnectionSupervisor class."""

import socket
import threading
import unittest
from unittest.mock import Mock, patch

from kanata_observer.core.stream import ConnectionTerminated, MessageStreamProcessor
from kanata_observer.core.supervisor import ConnectionState, ConnectionSupervisor


class StopSupervisor(Exception):
    """Raised from the fake sleep to break out of the endless loop."""


class TestConnectionSupervisor(unittest.TestCase):
    """Test cases for ConnectionSupervisor."""

    def setUp(self):
        self.processor = Mock(spec=MessageStreamProcessor)
        self.connect = Mock()
        self.sleep = Mock()
        self.logger_patcher = patch('kanata_observer.core.supervisor.logger')
        self.mock_logger = self.logger_patcher.start()

    def tearDown(self):
        self.logger_patcher.stop()

    def _supervisor(self, **kwargs):
        return ConnectionSupervisor(
            5829, self.processor, connect=self.connect, sleep=self.sleep, **kwargs
        )

    def test_connect_failure_waits_then_retries(self):
        """Test an unreachable endpoint is retried after the fixed delay."""
        self.connect.side_effect = ConnectionRefusedError("refused")
        self.sleep.side_effect = [None, None, StopSupervisor()]

        with self.assertRaises(StopSupervisor):
            self._supervisor().run()

        self.assertEqual(self.connect.call_count, 3)
        self.assertEqual([c.args[0] for c in self.sleep.call_args_list], [30, 30, 30])
        self.processor.process.assert_not_called()

    def test_connect_arguments(self):
        """Test the loopback endpoint and connect timeout."""
        self.connect.side_effect = OSError("unreachable")

        self._supervisor().attempt()

        self.connect.assert_called_once_with(("127.0.0.1", 5829), timeout=5.0)

    def test_connect_timeout_retried(self):
        self.connect.side_effect = socket.timeout("timed out")
        supervisor = self._supervisor()

        supervisor.attempt()

        self.sleep.assert_called_once_with(30)
        self.assertEqual(supervisor.state, ConnectionState.DISCONNECTED)
        self.mock_logger.error.assert_called_once()
        self.assertIn("timed out", self.mock_logger.error.call_args.args[0])

    def test_session_handed_to_processor(self):
        """Test a live connection goes to the processor without a read timeout."""
        sock = Mock()
        self.connect.return_value = sock
        self.processor.process.side_effect = ConnectionTerminated("connection closed by kanata")
        supervisor = self._supervisor()

        supervisor.attempt()

        sock.settimeout.assert_called_once_with(None)
        self.processor.process.assert_called_once_with(sock)
        sock.close.assert_called()
        self.sleep.assert_called_once_with(30)
        self.assertEqual(supervisor.state, ConnectionState.DISCONNECTED)

    def test_settimeout_failure_closes_socket(self):
        """Test the socket is closed when it fails before reaching the processor."""
        sock = Mock()
        sock.settimeout.side_effect = OSError("bad file descriptor")
        self.connect.return_value = sock
        supervisor = self._supervisor()

        supervisor.attempt()

        self.processor.process.assert_not_called()
        sock.close.assert_called_once_with()
        self.sleep.assert_called_once_with(30)
        self.assertEqual(supervisor.state, ConnectionState.DISCONNECTED)

    def test_state_connected_during_session(self):
        states = []
        self.connect.return_value = Mock()
        supervisor = self._supervisor()

        def process(sock):
            states.append(supervisor.state)
            raise ConnectionTerminated("connection closed by kanata")

        self.processor.process.side_effect = process

        supervisor.attempt()

        self.assertEqual(states, [ConnectionState.CONNECTED])
        self.assertEqual(supervisor.state, ConnectionState.DISCONNECTED)

    def test_connection_lost_logged_with_cause(self):
        self.connect.return_value = Mock()
        self.processor.process.side_effect = ConnectionResetError("reset by peer")

        self._supervisor().attempt()

        message = self.mock_logger.error.call_args.args[0]
        self.assertIn("connection lost", message)
        self.assertIn("reset by peer", message)

    def test_reconnects_after_disconnect(self):
        """Test sessions and failures alternate forever with delays between them."""
        sessions = [Mock(), Mock()]
        self.connect.side_effect = [sessions[0], OSError("refused"), sessions[1]]
        self.processor.process.side_effect = ConnectionTerminated("connection closed by kanata")
        self.sleep.side_effect = [None, None, StopSupervisor()]

        with self.assertRaises(StopSupervisor):
            self._supervisor().run()

        self.assertEqual(self.connect.call_count, 3)
        self.assertEqual(
            [c.args[0] for c in self.processor.process.call_args_list], sessions
        )
        self.assertEqual(self.sleep.call_count, 3)

    def test_custom_delay(self):
        self.connect.side_effect = OSError("refused")

        self._supervisor(retry_delay=2, connect_timeout=1).attempt()

        self.sleep.assert_called_once_with(2)
        self.connect.assert_called_once_with(("127.0.0.1", 5829), timeout=1)

    def test_against_real_server(self):
        """Test one full session against a listening socket."""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.addCleanup(server.close)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        port = server.getsockname()[1]

        runner = Mock()
        processor = MessageStreamProcessor("/unused", runner=runner)

        def serve(address, timeout):
            client = socket.create_connection(address, timeout=timeout)
            conn, _ = server.accept()
            conn.sendall(b'{"LayerChange":{"new":"nav"}}\n')
            conn.close()
            return client

        supervisor = ConnectionSupervisor(port, processor, connect=serve, sleep=self.sleep)
        supervisor.attempt()

        runner.run.assert_called_once_with("nav")
        self.sleep.assert_called_once_with(30)

    def test_nested_frame_does_not_escape_session(self):
        """Test an unparseable deeply nested frame is skipped mid-session."""
        client, kanata = socket.socketpair()
        self.addCleanup(client.close)
        self.addCleanup(kanata.close)

        def send():
            kanata.sendall(b"[" * 100000 + b"]" * 100000 + b"\n")
            kanata.sendall(b'{"LayerChange":{"new":"nav"}}\n')
            kanata.close()

        sender = threading.Thread(target=send)
        sender.start()
        self.addCleanup(sender.join)

        runner = Mock()
        processor = MessageStreamProcessor("/unused", runner=runner)
        self.connect.return_value = client

        ConnectionSupervisor(5829, processor, connect=self.connect, sleep=self.sleep).attempt()

        runner.run.assert_called_once_with("nav")
        self.sleep.assert_called_once_with(30)


if __name__ == '__main__':
    unittest.main()
