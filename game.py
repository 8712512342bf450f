import asyncio
import logging
import random
import re
import uuid
from dataclasses import dataclass, field

import settings
from question import build_any

logger = logging.getLogger(__name__)

# Pending control messages a session will hold before clicks are dropped
QUEUE_SIZE = 10


# ============ Errors ============

class SessionAlreadyActive(Exception):
    """The key already has a running game session"""

    def __init__(self, key):
        super().__init__(f"{key} has already created a session")
        self.key = key


class DeliveryError(Exception):
    """Sending, editing or responding on the chat platform failed"""


class ExitReason:
    POOL_EXHAUSTED = "pool_exhausted"  # No more words left to ask
    TIMEOUT = "timeout"                # Nobody clicked in time
    NETWORK_ERROR = "network_error"    # Platform call failed
    CLOSE_REQUEST = "close_request"    # /stop


EXIT_MESSAGES = {
    ExitReason.POOL_EXHAUSTED: "There are no more words left in the pool",
    ExitReason.TIMEOUT: "Stopping game due to inactivity...",
    ExitReason.NETWORK_ERROR: "Stopping game due to network error...",
    ExitReason.CLOSE_REQUEST: None,
}


class GameExit(Exception):
    """Unwinds a round back to its session with the reason the game ends"""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


# ============ Control Messages ============

@dataclass(frozen=True)
class ComponentEvent:
    """A button click routed from the platform"""
    custom_id: str
    user_id: int
    user_name: str = ""
    # Platform object the messenger needs to respond (discord.Interaction)
    raw: object = field(default=None, compare=False, repr=False)


class CloseRequest:
    """Tells a session to stop at its next poll"""


CLOSE = CloseRequest()


def parse_session_key(custom_id):
    """Session key encoded as the leading run of digits of a component id"""
    match = re.match(r"^\d+", custom_id or "")
    if not match:
        return None
    return int(match.group())


def parse_custom_id(custom_id):
    """Split a button id into (menu_id, choice). None if it isn't a game button."""
    match = re.match(r"^(.*),([0-4])$", custom_id or "")
    if not match:
        return None
    return match.group(1), int(match.group(2))


# ============ Platform ============

class Messenger:
    """What a game needs from the chat platform. Failures raise DeliveryError."""

    async def send_message(self, channel, content, components=None):
        """Post a new message, returning a handle that can be edited later"""
        raise NotImplementedError

    async def edit_message(self, handle, components):
        raise NotImplementedError

    async def respond_to_event(self, event, content):
        """Reply to a click. `content` is a str or an AnswerReveal."""
        raise NotImplementedError


@dataclass
class OptionButton:
    id: str
    text: str
    disabled: bool = False


@dataclass(frozen=True)
class AnswerReveal:
    answer: str
    levels: tuple
    user_name: str

    @property
    def definition_url(self):
        return f"https://jisho.org/search/{self.answer}"

    @property
    def title(self):
        return f"{self.answer} {list(self.levels)}"

    @property
    def description(self):
        return f"[**Definition**]({self.definition_url})\n{self.user_name} {settings.EMOTE_WOW}"


TAUNTS = (
    "{wat} noob",
    "{wat} nuh-uh",
    "{wat} what is he cooking",
    "{wat} refund nitro",
    "{wat} trolling are we?",
    "{wat} nt bro",
    "{wat} smooth brain",
    "{wat} stop",
    "{wat} ?",
    "{wat} so bad",
    "{wat} meow",
    "{wat} imagine",
    "{wat} no",
    "{wat} wrong",
    "{wat} ぴえん",
    "{wat} あほ",
    "{wat}",
    "{fubu_laugh}",
    "{scrajj}",
    "{anw}",
)


def taunt_message(user_id, choice, rng=None):
    """A randomized jab at `user_id` for picking `choice`"""
    taunt = (rng or random).choice(TAUNTS).format(
        wat=settings.EMOTE_WAT,
        fubu_laugh=settings.EMOTE_FUBU_LAUGH,
        scrajj=settings.EMOTE_SCRAJJ,
        anw=settings.EMOTE_ANW,
    )
    return f"{taunt} <@{user_id}> ({choice})"


# ============ Round ============

async def next_event(queue, timeout):
    """
    Wait for the next click on the session queue.
    Raises GameExit on inactivity or when a close request arrives.
    """
    try:
        message = await asyncio.wait_for(queue.get(), timeout)
    except asyncio.TimeoutError:
        raise GameExit(ExitReason.TIMEOUT) from None

    if isinstance(message, CloseRequest):
        raise GameExit(ExitReason.CLOSE_REQUEST)
    return message


class Menu:
    """The buttons of one question and which of them are still clickable"""

    def __init__(self, menu_id, question, entry, rng=None):
        self.id = menu_id
        self.prompt = question.prompt
        self.entry = entry
        self.answer = question.answer
        self.buttons = [
            OptionButton(id=f"{menu_id},{i}", text=text)
            for i, text in enumerate(question.options)
        ]
        self.resolved = False
        self.rng = rng

    @property
    def answer_id(self):
        return self.buttons[self.answer].id

    @property
    def answer_text(self):
        return self.buttons[self.answer].text

    def components(self):
        """Snapshot of the buttons for rendering"""
        return [OptionButton(b.id, b.text, b.disabled) for b in self.buttons]

    def content(self, round_no):
        return f"Round {round_no}\nId: {self.entry.id}\nPrompt: {self.prompt}"

    def select(self, option_id):
        """
        Apply a click. Returns True when it was the answer (all buttons get
        disabled), False for a wrong option (only it gets disabled), and None
        when the id doesn't belong to this round.
        """
        parsed = parse_custom_id(option_id)
        if parsed is None or parsed[0] != self.id or self.resolved:
            return None
        choice = parsed[1]
        if choice >= len(self.buttons):
            return None

        # Compare ids, option labels can repeat
        if self.buttons[choice].id == self.answer_id:
            for button in self.buttons:
                button.disabled = True
            self.resolved = True
            return True

        self.buttons[choice].disabled = True
        return False

    def reveal(self, event):
        return AnswerReveal(
            answer=self.answer_text,
            levels=tuple(self.entry.levels()),
            user_name=event.user_name,
        )

    async def handle_interactions(self, queue, messenger, handle, timeout):
        """
        Process clicks until the answer is chosen. Only clicks on this round's
        buttons push back the inactivity deadline.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not self.resolved:
            event = await next_event(queue, max(0.0, deadline - loop.time()))

            correct = self.select(event.custom_id)
            if correct is None:
                logger.debug("Ignoring stale click %s on menu %s", event.custom_id, self.id)
                continue
            deadline = loop.time() + timeout

            await messenger.edit_message(handle, self.components())

            if correct:
                await messenger.respond_to_event(event, self.reveal(event))
            else:
                choice = parse_custom_id(event.custom_id)[1]
                await messenger.respond_to_event(
                    event, taunt_message(event.user_id, self.buttons[choice].text, self.rng)
                )


# ============ Session ============

class GameSession:
    """One user's (or guild's) run of rounds over a sampled word pool"""

    def __init__(self, key, channel, mode, levels, pos_tags, dictionary, messenger,
                 registry, timeout=None, rng=None):
        self.key = key
        self.channel = channel
        self.mode = mode
        self.levels = frozenset(levels)
        self.pos_tags = frozenset(pos_tags)
        self.dictionary = dictionary
        self.messenger = messenger
        self.registry = registry
        self.timeout = settings.ROUND_TIMEOUT if timeout is None else timeout
        self.rng = rng or random.Random()
        self.queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        self.task = None

    def new_menu_id(self):
        """Round id unique for the life of the process, prefixed with the session key"""
        return f"{self.key},{uuid.uuid4().hex}"

    def offer(self, message):
        """Queue a control message without waiting. Returns False if it was dropped."""
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    def close(self):
        """Ask the session to stop; a full queue gives up its oldest click for it"""
        if self.offer(CLOSE):
            return
        self.queue.get_nowait()
        self.queue.put_nowait(CLOSE)

    async def run(self):
        """Play until the game ends; the key stays taken until the exit message is out"""
        reason = ExitReason.POOL_EXHAUSTED
        try:
            try:
                reason = await self._play()
            except Exception:
                logger.exception("Game session %s crashed", self.key)
                reason = ExitReason.NETWORK_ERROR

            logger.info("Game session %s ended: %s", self.key, reason)

            message = EXIT_MESSAGES[reason]
            if message:
                try:
                    await self.messenger.send_message(self.channel, message)
                except DeliveryError as e:
                    logger.warning("Couldn't send exit message for session %s: %s", self.key, e)
        finally:
            self.registry.remove(self.key, self)
        return reason

    async def _play(self):
        round_no = 0
        for entry in self.dictionary.sample(self.levels, self.pos_tags, self.rng):
            question = build_any(entry, self.mode, self.pos_tags, self.dictionary, self.rng)
            if question is None:
                logger.debug("Entry %s has no %s question for the chosen tags", entry.id, self.mode)
                continue

            round_no += 1
            menu = Menu(self.new_menu_id(), question, entry, self.rng)

            try:
                handle = await self.messenger.send_message(
                    self.channel, menu.content(round_no), menu.components()
                )
                await menu.handle_interactions(self.queue, self.messenger, handle, self.timeout)
            except GameExit as e:
                return e.reason
            except DeliveryError as e:
                logger.warning("Delivery failed in session %s: %s", self.key, e)
                return ExitReason.NETWORK_ERROR

        return ExitReason.POOL_EXHAUSTED


# ============ Manager ============

class SessionRegistry:
    """
    Active sessions by key. Every operation completes without awaiting, so on
    the event loop each one is atomic with respect to other tasks.
    """

    def __init__(self):
        self._sessions = {}

    def insert_if_absent(self, key, session):
        if key in self._sessions:
            return False
        self._sessions[key] = session
        return True

    def get(self, key):
        return self._sessions.get(key)

    def remove(self, key, session=None):
        """Remove `key`, only if it still maps to `session` when one is given"""
        current = self._sessions.get(key)
        if current is None or (session is not None and current is not session):
            return False
        del self._sessions[key]
        return True

    def __contains__(self, key):
        return key in self._sessions

    def __len__(self):
        return len(self._sessions)


class Manager:
    """Starts, stops and routes clicks to game sessions"""

    def __init__(self, dictionary, messenger, timeout=None, rng=None):
        self.dictionary = dictionary
        self.messenger = messenger
        self.timeout = timeout
        self.rng = rng
        self.sessions = SessionRegistry()

    def start(self, key, channel, mode, levels, pos_tags):
        """
        Start a session for `key` in the background and return it.
        Raises SessionAlreadyActive if `key` already has one running.
        """
        loop = asyncio.get_running_loop()
        session = GameSession(
            key, channel, mode, levels, pos_tags,
            self.dictionary, self.messenger, self.sessions,
            timeout=self.timeout, rng=self.rng,
        )
        if not self.sessions.insert_if_absent(key, session):
            raise SessionAlreadyActive(key)

        session.task = loop.create_task(session.run())
        logger.info("Started %s game session %s", mode, key)
        return session

    def stop(self, key):
        """Ask `key`'s session to close. Returns False if there wasn't one."""
        session = self.sessions.get(key)
        if session is None:
            return False
        session.close()
        return True

    def dispatch(self, event):
        """Forward a click to the session its id belongs to. Never waits."""
        key = parse_session_key(event.custom_id)
        session = self.sessions.get(key) if key is not None else None
        if session is None:
            logger.debug("Dropping click %s with no session", event.custom_id)
            return False
        if not session.offer(event):
            logger.debug("Session %s queue full, dropping click %s", key, event.custom_id)
            return False
        return True

    def __len__(self):
        return len(self.sessions)
