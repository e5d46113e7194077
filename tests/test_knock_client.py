"""Tests for the port knock client."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shipyard.remote.knock_client import KnockClient


class TestKnockClient:

    def test_knocks_each_port_in_order(self):
        sock = MagicMock()
        with patch("shipyard.remote.knock_client.socket.socket", return_value=sock), \
             patch("shipyard.remote.knock_client.time.sleep") as mock_sleep:
            assert KnockClient("10.0.0.5", [7000, 8000, 9000], delay=0.1).knock() is True

        ports = [c.args[0][1] for c in sock.connect_ex.call_args_list]
        assert ports == [7000, 8000, 9000]
        # no sleep after the last knock
        assert mock_sleep.call_count == 2

    def test_socket_error_aborts(self):
        with patch("shipyard.remote.knock_client.socket.socket", side_effect=OSError("no socket")):
            assert KnockClient("10.0.0.5", [7000]).knock() is False

    @pytest.mark.asyncio
    async def test_knock_async_settles(self):
        client = KnockClient("10.0.0.5", [7000])
        with patch.object(KnockClient, "knock", return_value=True), \
             patch("shipyard.remote.knock_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await client.knock_async(settle=0.5) is True
        mock_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_knock_async_failure(self):
        client = KnockClient("10.0.0.5", [7000])
        with patch.object(KnockClient, "knock", return_value=False):
            assert await client.knock_async(settle=0) is False
