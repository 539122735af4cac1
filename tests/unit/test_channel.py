"""Tests for the control channel client against a local fake server."""

import asyncio

import pytest

from soundpad_bridge.core.control.channel import ControlChannel, is_complete_response
from soundpad_bridge.errors import ControlChannelError
from tests.unit.fakes import FakeSoundpadServer


async def _closed_port_address() -> str:
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return f"tcp://127.0.0.1:{port}"


@pytest.mark.parametrize(
    ("data", "complete"),
    [
        ("R-200", True),
        ("E-404 not found", True),
        ("<Soundlist><Sound index=\"1\"", False),
        ("<Soundlist></Soundlist>", True),
        ("<PlayStatus>PLAYING</PlayStatus>", True),
        ('<Sound index="1"/>', True),
        ("", False),
    ],
)
def test_is_complete_response(data: str, complete: bool) -> None:
    assert is_complete_response(data) is complete


@pytest.mark.asyncio
async def test_send_command_writes_nul_terminated_command() -> None:
    async with FakeSoundpadServer() as server:
        channel = ControlChannel(server.address)
        reply = await channel.send_command("DoStopSound()")
    assert reply == "R-200"
    assert server.commands == ["DoStopSound()"]


@pytest.mark.asyncio
async def test_reply_split_across_chunks_is_joined() -> None:
    replies = {"GetSoundlist()": [b"<Soundlist><Sound index=\"1\" ", b"title=\"x\"/></Soundlist>"]}
    async with FakeSoundpadServer(replies, hold_open=True) as server:
        reply = await ControlChannel(server.address).get_sound_list()
    assert reply == '<Soundlist><Sound index="1" title="x"/></Soundlist>'


@pytest.mark.asyncio
async def test_nul_bytes_are_stripped() -> None:
    async with FakeSoundpadServer(default=[b"R-200\0"]) as server:
        assert await ControlChannel(server.address).toggle_pause() == "R-200"


@pytest.mark.asyncio
async def test_partial_reply_returned_on_timeout() -> None:
    async with FakeSoundpadServer(default=[b"<Sounds>"], hold_open=True) as server:
        channel = ControlChannel(server.address, request_timeout=0.2)
        assert await channel.send_command("GetSoundlist()") == "<Sounds>"


@pytest.mark.asyncio
async def test_timeout_without_data_raises() -> None:
    states: list[bool] = []
    async with FakeSoundpadServer(default=[], hold_open=True) as server:
        channel = ControlChannel(server.address, request_timeout=0.2, on_state=states.append)
        with pytest.raises(ControlChannelError, match="timeout"):
            await channel.send_command("GetPlayStatus()")
    assert states == [False]


@pytest.mark.asyncio
async def test_closed_without_data_returns_empty() -> None:
    async with FakeSoundpadServer(default=[]) as server:
        assert await ControlChannel(server.address).send_command("DoStopSound()") == ""


@pytest.mark.asyncio
async def test_unreachable_channel_raises_and_reports_down() -> None:
    states: list[bool] = []
    channel = ControlChannel(await _closed_port_address(), on_state=states.append)
    with pytest.raises(ControlChannelError, match="Cannot reach"):
        await channel.send_command("DoStopSound()")
    assert states == [False]


@pytest.mark.asyncio
async def test_reply_reports_up() -> None:
    states: list[bool] = []
    async with FakeSoundpadServer() as server:
        await ControlChannel(server.address, on_state=states.append).stop_sound()
    assert states == [True]


@pytest.mark.asyncio
async def test_probe() -> None:
    async with FakeSoundpadServer(default=[b"<PlayStatus>STOPPED</PlayStatus>"]) as server:
        assert await ControlChannel(server.address).probe() is True
    assert server.commands == ["GetPlayStatus()"]
    assert await ControlChannel(await _closed_port_address()).probe() is False


@pytest.mark.asyncio
async def test_probe_silent_server_times_out() -> None:
    async with FakeSoundpadServer(default=[], hold_open=True) as server:
        assert await ControlChannel(server.address, probe_timeout=0.1).probe() is False


@pytest.mark.asyncio
async def test_playback_command_formats() -> None:
    async with FakeSoundpadServer() as server:
        channel = ControlChannel(server.address)
        await channel.play_sound(3)
        await channel.play_sound(4, speakers_only=True)
        await channel.set_volume(150)
        await channel.set_volume(-5)
    assert server.commands == [
        "DoPlaySound(3)",
        "DoPlaySound(4,true,false)",
        "SetVolume(100)",
        "SetVolume(0)",
    ]
