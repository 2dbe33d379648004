"""MCP server entry point for MT-SICS balances.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP

from .balance import Balance
from .config import DEFAULT_BAUDRATE, DEFAULT_PORT, LOG_LEVEL
from .errors import MtSicsError
from .models.status import UnitChannel
from .protocol.commands import CATALOG

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "mt-sics",
    instructions="MCP server for Mettler Toledo balances speaking MT-SICS",
)

# Global connection state
_balance: Balance | None = None
_port: str = ""

DOOR_ACTIONS = {
    "close_all": "close_all_doors",
    "open_right": "open_right_door",
    "open_left": "open_left_door",
}

CHANNELS = {channel.value for channel in UnitChannel}


def _get_balance() -> Balance:
    """Get the connected balance, raising if not connected."""
    if _balance is None:
        raise RuntimeError(
            "Not connected to balance. Use the 'connect' tool first."
        )
    return _balance


def _run(
    operation: str, render: Callable[[Any], dict[str, Any]], **params: Any
) -> dict[str, Any]:
    """Execute a catalog operation, reporting protocol errors as a result."""
    balance = _get_balance()
    try:
        result = balance.execute(operation, **params)
    except MtSicsError as e:
        logger.warning("%s failed: %s", operation, e)
        return {"error": str(e)}
    return render(result)


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(port: str | None = None, baudrate: int | None = None) -> dict[str, Any]:
    """Open the serial connection to the balance.

    Queries the model and serial number to confirm the device answers.

    Args:
        port: Serial port, e.g. /dev/ttyUSB0 or COM3 (default from MT_SICS_PORT).
        baudrate: Baud rate (default from MT_SICS_BAUDRATE, usually 9600).
    """
    global _balance, _port
    if _balance is not None:
        return {"connected": True, "message": "Already connected", "port": _port}

    port = port or DEFAULT_PORT
    try:
        balance = Balance.open(port, baudrate=baudrate or DEFAULT_BAUDRATE)
    except MtSicsError as e:
        return {"connected": False, "error": str(e)}
    _balance, _port = balance, port

    result: dict[str, Any] = {"connected": True, "port": port}
    try:
        result["model"] = balance.model()
        result["serial_number"] = balance.serial_number()
    except MtSicsError as e:
        logger.warning("Balance did not identify itself: %s", e)
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial connection to the balance."""
    global _balance
    if _balance is None:
        return {"disconnected": True}
    _balance.close()
    _balance = None
    return {"disconnected": True}


@mcp.tool()
def get_device_info() -> dict[str, Any]:
    """Retrieve the balance model and serial number (I2, I4)."""
    model = _run("model", lambda text: {"model": text})
    if "error" in model:
        return model
    serial_number = _run("serial_number", lambda text: {"serial_number": text})
    if "error" in serial_number:
        return serial_number
    return {**model, **serial_number, "port": _port}


# ─── WEIGHING TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def get_weight(immediately: bool = False) -> dict[str, Any]:
    """Read the weight.

    Args:
        immediately: If True, return the current value even when it is not
                     yet stable (SI); otherwise wait for a stable value (S).
    """
    operation = "weight_immediately" if immediately else "weight"
    return _run(operation, lambda m: m.to_dict())


@mcp.tool()
def tare() -> dict[str, Any]:
    """Tare the balance and return the stored tare weight."""
    return _run("tare", lambda m: {"tare": m.to_dict()})


@mcp.tool()
def zero() -> dict[str, Any]:
    """Set the current weight as zero."""
    return _run("zero", lambda status: {"zeroed": True, "status": status.value})


@mcp.tool()
def stream_weights(
    count: int | None = None, timeout_s: float | None = None
) -> dict[str, Any]:
    """Collect weights sent on each transfer-key press (continuous mode).

    At least one bound is required.

    Args:
        count: Number of measurements to collect.
        timeout_s: Maximum session length in seconds.
    """
    balance = _get_balance()
    try:
        readings = balance.stream(target_count=count, timeout=timeout_s)
    except MtSicsError as e:
        logger.warning("stream failed: %s", e)
        return {"error": str(e)}
    return {
        "measurements": [m.to_dict() for m in readings],
        "count": len(readings),
    }


@mcp.tool()
def set_target(
    target: float,
    unit: str,
    upper_tolerance: float,
    lower_tolerance: float,
    relative: bool = False,
) -> dict[str, Any]:
    """Set a target weight and tolerance band for fill-to-target work.

    Args:
        target: Target weight.
        unit: Unit of the target, e.g. g.
        upper_tolerance: Allowed deviation above the target.
        lower_tolerance: Allowed deviation below the target.
        relative: If True, tolerances are in percent of the target.
    """
    return _run(
        "set_target",
        lambda _: {"target": target, "unit": unit, "relative": relative},
        target=target,
        unit=unit,
        upper_tolerance=upper_tolerance,
        lower_tolerance=lower_tolerance,
        relative=relative,
    )


# ─── LABEL & DISPLAY TOOLS ───────────────────────────────────────────

@mcp.tool()
def set_result_id(label: str, value: str) -> dict[str, Any]:
    """Label the next result, e.g. label "Sample No.:" value "1234"."""
    return _run(
        "set_result_id", lambda _: {"label": label, "value": value},
        label=label, value=value,
    )


@mcp.tool()
def set_task_id(label: str, value: str) -> dict[str, Any]:
    """Label the task step, e.g. label "Duplicate No.:" value "1 of 2"."""
    return _run(
        "set_task_id", lambda _: {"label": label, "value": value},
        label=label, value=value,
    )


@mcp.tool()
def set_message(message: str) -> dict[str, Any]:
    """Show a message on the display over the weight. Empty text clears it.

    Args:
        message: Text to display; the length limit depends on the model.
    """
    return _run("set_message", lambda _: {"message": message}, message=message)


@mcp.tool()
def show_weight() -> dict[str, Any]:
    """Clear any message and show the weight value on the display."""
    return _run("show_weight", lambda _: {"showing_weight": True})


# ─── UNIT TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def get_unit(channel: int = 0) -> dict[str, Any]:
    """Read the weighing unit of a channel.

    Args:
        channel: 0 host interface, 1 display, 2 info field.
    """
    if channel not in CHANNELS:
        return {"error": "Channel must be 0 (host), 1 (display) or 2 (info)"}
    return _run(
        "get_unit", lambda unit: {"channel": channel, "unit": unit}, channel=channel
    )


@mcp.tool()
def set_unit(unit: str, channel: int = 0) -> dict[str, Any]:
    """Change the weighing unit of a channel.

    Args:
        unit: Unit token with proper capitalization, e.g. g, mg, ct.
        channel: 0 host interface, 1 display, 2 info field.
    """
    if channel not in CHANNELS:
        return {"error": "Channel must be 0 (host), 1 (display) or 2 (info)"}
    return _run(
        "set_unit",
        lambda _: {"channel": channel, "unit": unit},
        unit=unit,
        channel=channel,
    )


# ─── POWER & DOOR TOOLS ──────────────────────────────────────────────

@mcp.tool()
def power(on: bool) -> dict[str, Any]:
    """Switch the balance on or to stand-by.

    Args:
        on: True to switch on, False for stand-by.
    """
    return _run(
        "power_on" if on else "power_off",
        lambda status: {"on": on, "already": status.value == "L"},
    )


@mcp.tool()
def door(action: str) -> dict[str, Any]:
    """Move the draft shield doors.

    Args:
        action: close_all, open_right or open_left.
    """
    if action not in DOOR_ACTIONS:
        return {"error": f"Unknown action '{action}'. Valid: {list(DOOR_ACTIONS)}"}
    return _run(
        DOOR_ACTIONS[action],
        lambda status: {"action": action, "already": status.value == "L"},
    )


@mcp.tool()
def get_door_status() -> dict[str, Any]:
    """Read the draft shield door status (0-7 positions, 8 error, 9 moving)."""
    return _run(
        "door_status",
        lambda status: {"code": int(status), "status": status.name.lower()},
    )


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("mtsics://device/status")
def resource_device_status() -> str:
    """Connection state and port."""
    return json.dumps({"connected": _balance is not None, "port": _port})


@mcp.resource("mtsics://catalog/operations")
def resource_operations() -> str:
    """All catalog operations with their descriptions."""
    operations = [
        {"name": entry.name, "description": entry.description}
        for entry in CATALOG.values()
    ]
    return json.dumps({"operations": operations, "count": len(operations)})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def weigh_sample(sample_id: str, target: float | None = None, unit: str = "g") -> str:
    """Guide the AI through a labelled weighing of one sample.

    Args:
        sample_id: Sample number or name to attach to the result.
        target: Optional target weight for fill-to-target dosing.
        unit: Weighing unit.
    """
    target_step = (
        f"- Set target {target} {unit} with set_target and suitable tolerances\n"
        if target is not None
        else ""
    )
    return f"""Weigh sample {sample_id}.
Steps:
- Close the draft shield doors with the door tool
- Zero the balance, place the container, then tare
{target_step}- Label the result with set_result_id ("Sample No.:", "{sample_id}")
- Read a stable weight with get_weight
- Clear any display message with show_weight when done

Report the final weight in {unit}."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
