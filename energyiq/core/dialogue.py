"""
Conversational device collection.

A finite-state dialogue that collects one device field per answer,
validates every answer, and runs the calculation once the declared
number of devices has been collected.

Flow:
    greeting -> ask_device_count
    -> (ask_device_type -> ask_quantity -> ask_wattage -> ask_hours) x N
    -> calculating -> result
    result <-> tips / free_ask

transition() is pure: it takes a DialogueState and one line of user
input and returns the next state plus the bot messages to show. Side
effects (history, result consumers, AI calls) belong to
DialogueController.
"""

import logging
import sqlite3
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple

from .calculator import calculate_all_devices, estimate_device_energy
from .devices import DeviceType, match_device_type
from .formatting import format_duration, format_number
from .parsing import (
    InvalidInput,
    parse_device_count,
    parse_duration,
    parse_quantity,
    parse_wattage,
)
from .rates import TariffRate
from .tips import CHAT_TIPS
from energyiq.storage.models import CalculationResult, Device, generate_id

logger = logging.getLogger(__name__)

UNDO_TOKENS = {"undo", "__undo__"}
RESET_TOKEN = "reset"
TIPS_TOKEN = "tips"


class DialogueStep(Enum):
    """Named states of the dialogue."""
    GREETING = "greeting"
    ASK_DEVICE_COUNT = "ask_device_count"
    ASK_DEVICE_TYPE = "ask_device_type"
    ASK_QUANTITY = "ask_quantity"
    ASK_WATTAGE = "ask_wattage"
    ASK_HOURS = "ask_hours"
    CALCULATING = "calculating"
    RESULT = "result"
    TIPS = "tips"
    FREE_ASK = "free_ask"


RESULT_STEPS = (DialogueStep.RESULT, DialogueStep.TIPS, DialogueStep.FREE_ASK)


@dataclass(frozen=True)
class QuickReply:
    """A suggested answer the UI can offer as a button."""
    label: str
    value: str


@dataclass(frozen=True)
class Message:
    """One chat message, in emission order."""
    role: str  # "bot" or "user"
    text: str
    options: Tuple[QuickReply, ...] = ()


@dataclass(frozen=True)
class PendingDevice:
    """Fields collected so far for the device being entered."""
    type: Optional[DeviceType] = None
    quantity: Optional[int] = None
    wattage: Optional[int] = None


@dataclass(frozen=True)
class DialogueState:
    """Everything the dialogue knows about the current conversation."""
    tariff: TariffRate
    step: DialogueStep = DialogueStep.GREETING
    devices: Tuple[Device, ...] = ()
    current: PendingDevice = field(default_factory=PendingDevice)
    target_count: int = 0
    device_index: int = 0
    result: Optional[CalculationResult] = None


class Transition(NamedTuple):
    """Outcome of feeding one input to the dialogue."""
    state: DialogueState
    messages: List[Message]
    question: Optional[str] = None
    calculated: Optional[CalculationResult] = None


def _bot(text: str, options: Tuple[QuickReply, ...] = ()) -> Message:
    return Message(role="bot", text=text, options=options)


def _device_type_list() -> str:
    return ", ".join(device_type.label for device_type in DeviceType)


def quick_replies(state: DialogueState) -> Tuple[QuickReply, ...]:
    """Suggested answers for the state's current step."""
    step = state.step
    if step is DialogueStep.ASK_DEVICE_COUNT:
        return tuple(QuickReply(str(n), str(n)) for n in (1, 2, 3, 4, 5, 10))
    if step is DialogueStep.ASK_DEVICE_TYPE:
        undo = (QuickReply("↩️ Undo", "undo"),) if state.devices else ()
        return undo + tuple(QuickReply(t.label, t.value) for t in DeviceType)
    if step is DialogueStep.ASK_QUANTITY:
        return tuple(QuickReply(f"+{n}", str(n)) for n in range(1, 6))
    if step is DialogueStep.ASK_WATTAGE:
        default = state.current.type.default_wattage if state.current.type else 100
        return (QuickReply(f"⚡ Auto ({default}W)", "auto"),) + tuple(
            QuickReply(f"{w}W", str(w)) for w in (100, 500, 1000, 1500)
        )
    if step is DialogueStep.ASK_HOURS:
        return tuple(QuickReply(d, d) for d in ("30m", "1h", "2h", "4h", "8h", "24h"))
    if step in RESULT_STEPS:
        return (QuickReply("💡 Tips", TIPS_TOKEN), QuickReply("🔄 Reset", RESET_TOKEN))
    return ()


def _say(state: DialogueState, text: str) -> Message:
    return _bot(text, quick_replies(state))


GREETING_TEXT = (
    "👋 Hello! I'm EnergyIQ, your smart energy assistant.\n\n"
    "I'll help you calculate your monthly electricity consumption and cost.\n\n"
    "Let's start — how many electrical devices do you use at home?"
)

RESULT_FOOTER = (
    "Type `reset` to calculate again, `tips` for energy-saving advice, "
    "or ask me any electricity question! 💡"
)


def start(tariff: TariffRate) -> Transition:
    """Begin a conversation: greet and ask for the device count."""
    state = DialogueState(tariff=tariff, step=DialogueStep.ASK_DEVICE_COUNT)
    return Transition(state, [_say(state, GREETING_TEXT)])


def reset(state: DialogueState) -> Transition:
    """Discard every collected device and start over at the device count."""
    fresh = DialogueState(tariff=state.tariff, step=DialogueStep.ASK_DEVICE_COUNT)
    return Transition(fresh, [_say(
        fresh,
        "🔄 Reset! Let's start fresh.\n\nHow many electrical devices do you use at home?"
    )])


def transition(
    state: DialogueState,
    text: str,
    id_factory: Callable[[], str] = generate_id
) -> Transition:
    """Feed one line of user input to the dialogue.

    Invalid answers re-prompt without changing the state. Blank input is
    ignored.

    Args:
        state: Current dialogue state
        text: Raw user input (typed text or a quick-reply value)
        id_factory: Source of fresh device ids

    Returns:
        Transition with the new state and the bot messages to show
    """
    answer = text.strip()
    if not answer:
        return Transition(state, [])

    if state.step is DialogueStep.GREETING:
        return start(state.tariff)

    lowered = answer.lower()
    if lowered == RESET_TOKEN:
        return reset(state)

    handler = _HANDLERS.get(state.step)
    if handler is None:
        logger.debug("Input %r ignored in step %s", answer, state.step.value)
        return Transition(state, [])

    try:
        return handler(state, answer, id_factory)
    except InvalidInput as exc:
        return Transition(state, [_say(state, str(exc))])


def _on_device_count(state: DialogueState, answer: str, id_factory) -> Transition:
    count = parse_device_count(answer)
    new_state = replace(
        state,
        step=DialogueStep.ASK_DEVICE_TYPE,
        target_count=count,
        device_index=0,
        devices=(),
        current=PendingDevice()
    )
    plural = "s" if count > 1 else ""
    return Transition(new_state, [_say(
        new_state,
        f"Great! You have {count} device{plural}. Let's add them one by one.\n\n"
        f"📱 Device #1 — What type of device is it?\n\n"
        f"Choose from: {_device_type_list()}"
    )])


def _on_device_type(state: DialogueState, answer: str, id_factory) -> Transition:
    if answer.lower() in UNDO_TOKENS:
        if not state.devices:
            raise InvalidInput("There is no device to undo yet. What type is Device #1?")
        devices = state.devices[:-1]
        new_state = replace(
            state,
            devices=devices,
            device_index=state.device_index - 1,
            current=PendingDevice()
        )
        return Transition(new_state, [_say(
            new_state,
            f"↩️ Last device removed! You now have {len(devices)}/{state.target_count} devices.\n\n"
            f"📱 Device #{new_state.device_index + 1} — What type?\n\n"
            f"{_device_type_list()}"
        )])

    device_type = match_device_type(answer)
    if device_type is None:
        raise InvalidInput(
            f"I don't recognize that device. Please pick one from:\n{_device_type_list()}"
        )

    new_state = replace(state, step=DialogueStep.ASK_QUANTITY, current=PendingDevice(type=device_type))
    return Transition(new_state, [_say(
        new_state,
        f"{device_type.label} — nice!\n\n"
        f"{device_type.profile.tooltip}\n\n"
        f"How many of these do you have?"
    )])


def _on_quantity(state: DialogueState, answer: str, id_factory) -> Transition:
    quantity = parse_quantity(answer)
    device_type = state.current.type
    new_state = replace(
        state,
        step=DialogueStep.ASK_WATTAGE,
        current=replace(state.current, quantity=quantity)
    )
    return Transition(new_state, [_say(
        new_state,
        f"Got it — {quantity}x {device_type.value}.\n\n"
        f"What's the wattage rating? The average for {device_type.value} is about "
        f"{device_type.default_wattage}W.\n\n"
        f"Type the wattage or just say `auto` to use the default."
    )])


def _on_wattage(state: DialogueState, answer: str, id_factory) -> Transition:
    wattage = parse_wattage(answer, state.current.type)
    new_state = replace(
        state,
        step=DialogueStep.ASK_HOURS,
        current=replace(state.current, wattage=wattage)
    )
    return Transition(new_state, [_say(
        new_state,
        f"⚡ {wattage}W — noted!\n\n"
        f"How long do you use this device per day?\n\n"
        f"You can type:\n"
        f"• Hours: `2` or `0.5`\n"
        f"• Minutes: `30m` or `45min`\n"
        f"• Both: `1h30m`"
    )])


def _on_hours(state: DialogueState, answer: str, id_factory) -> Transition:
    hours = parse_duration(answer)
    pending = state.current
    device = Device(
        id=id_factory(),
        type=pending.type,
        quantity=pending.quantity,
        wattage=pending.wattage,
        hours_per_day=hours
    )
    devices = state.devices + (device,)
    next_index = state.device_index + 1
    daily_kwh, monthly_kwh = estimate_device_energy(device)
    summary = (
        f"✅ {device.type.label} added!\n"
        f"• Qty: {device.quantity} | Wattage: {device.wattage}W | "
        f"Usage: {format_duration(device.hours_per_day)}/day\n"
    )

    if next_index < state.target_count:
        running_monthly = sum(estimate_device_energy(d)[1] for d in devices)
        new_state = replace(
            state,
            step=DialogueStep.ASK_DEVICE_TYPE,
            devices=devices,
            device_index=next_index,
            current=PendingDevice()
        )
        return Transition(new_state, [_say(
            new_state,
            summary
            + f"• Daily: {daily_kwh:.2f} kWh | Monthly: {monthly_kwh:.2f} kWh\n"
            + f"• Running total: {running_monthly:.2f} kWh/month\n\n"
            + f"📱 Device #{next_index + 1} — What type?\n\n"
            + _device_type_list()
        )])

    calculating = replace(
        state,
        step=DialogueStep.CALCULATING,
        devices=devices,
        device_index=next_index,
        current=PendingDevice()
    )
    announce = _bot(
        summary
        + f"\nAll {state.target_count} devices added! Let me calculate your energy consumption... 🔄"
    )

    tariff = state.tariff
    result = calculate_all_devices(devices, tariff.rate_per_kwh, tariff.currency, tariff.country)
    done = replace(calculating, step=DialogueStep.RESULT, result=result)
    return Transition(done, [announce, _say(done, render_result(result))], calculated=result)


def render_result(result: CalculationResult) -> str:
    """Plain-text breakdown of a finished calculation."""
    currency = result.currency
    breakdown = "\n".join(
        f"{d.device.type.label} (x{d.device.quantity}): {format_number(d.monthly_kwh)} kWh — "
        f"{currency}{format_number(d.monthly_cost)} ({format_number(d.percentage)}%)"
        for d in result.devices
    )
    return (
        "📊 Calculation Complete!\n\n"
        f"Device Breakdown:\n{breakdown}\n\n"
        "━━━━━━━━━━━━━━━━━━\n"
        f"⚡ Daily Usage: {format_number(result.total_daily_kwh)} kWh\n"
        f"📅 Monthly Usage: {format_number(result.total_monthly_kwh)} kWh\n"
        f"💰 Estimated Monthly Cost: {currency}{format_number(result.total_monthly_cost)}\n"
        f"🌍 Rate: {currency}{format_number(result.rate_per_kwh)}/kWh ({result.country})\n\n"
        + RESULT_FOOTER
    )


def _on_result(state: DialogueState, answer: str, id_factory) -> Transition:
    if answer.lower() == TIPS_TOKEN:
        new_state = replace(state, step=DialogueStep.TIPS)
        lines = "\n".join(f"{i}. {tip}" for i, tip in enumerate(CHAT_TIPS, start=1))
        return Transition(new_state, [_say(
            new_state,
            f"💡 Energy Saving Tips:\n\n{lines}\n\n"
            "Type `reset` to calculate again or ask me any electricity question!"
        )])

    return Transition(replace(state, step=DialogueStep.FREE_ASK), [], question=answer)


_HANDLERS = {
    DialogueStep.ASK_DEVICE_COUNT: _on_device_count,
    DialogueStep.ASK_DEVICE_TYPE: _on_device_type,
    DialogueStep.ASK_QUANTITY: _on_quantity,
    DialogueStep.ASK_WATTAGE: _on_wattage,
    DialogueStep.ASK_HOURS: _on_hours,
    DialogueStep.RESULT: _on_result,
    DialogueStep.TIPS: _on_result,
    DialogueStep.FREE_ASK: _on_result,
}


class DialogueController:
    """Owns one conversation and performs its side effects.

    The new state is committed before any side effect runs, so a failing
    result consumer never leaves the dialogue waiting for the last
    device again. After the final device the result is saved to history
    and then handed to the consumer. A failing history write is logged
    and does not stop the result from being shown.
    """

    def __init__(
        self,
        tariff: TariffRate,
        history=None,
        assistant=None,
        on_result: Optional[Callable[[CalculationResult], None]] = None,
        id_factory: Callable[[], str] = generate_id
    ):
        """Initialize the controller.

        Args:
            tariff: Rate used for every calculation in this conversation
            history: Store with an append(result) method (optional)
            assistant: Service with answer_question(question) (optional)
            on_result: Called once with each finished CalculationResult
            id_factory: Source of fresh device ids
        """
        self.history = history
        self.assistant = assistant
        self.on_result = on_result
        self.id_factory = id_factory
        self._state = DialogueState(tariff=tariff)

    @property
    def state(self) -> DialogueState:
        return self._state

    def start(self) -> List[Message]:
        outcome = start(self._state.tariff)
        self._state = outcome.state
        return outcome.messages

    def handle(self, text: str) -> List[Message]:
        """Process one user input and return the bot's replies."""
        outcome = transition(self._state, text, self.id_factory)
        self._state = outcome.state

        if outcome.calculated is not None:
            self._save(outcome.calculated)
            if self.on_result is not None:
                self.on_result(outcome.calculated)

        messages = list(outcome.messages)
        if outcome.question is not None:
            messages.append(self._answer(outcome.question))
        return messages

    def _save(self, result: CalculationResult) -> None:
        if self.history is None:
            return
        try:
            self.history.append(result)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to save calculation %s to history", result.id)

    def _answer(self, question: str) -> Message:
        follow_up = (
            "Feel free to ask another question, type `reset` to calculate again, "
            "or `tips` for energy-saving advice!"
        )
        if self.assistant is None:
            return _say(self._state, "⚠️ The AI assistant is not available right now.\n\n" + follow_up)

        reply = self.assistant.answer_question(question)
        if reply.source == "ai":
            return _say(self._state, f"🤖 AI Answer:\n\n{reply.text}\n\n{follow_up}")
        return _say(self._state, f"⚠️ {reply.text}\n\n{follow_up}")
