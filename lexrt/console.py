"""
Terminal presentation of an experiment session.

Keys are typed as words followed by Enter (``space``, ``right``,
``left`` by default). Screen texts follow the Turkish wording used with
participants.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from config.settings import KeyBindingConfig
from .experiment.phases import Phase, PhaseController, Signal
from .services.loader import LoadingStatus, LoadState

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("quit", "exit", "q")
RETRY_COMMAND = "retry"

SCREENS = {
    Phase.AWAITING_IDENTIFIER: "Please enter your email address",
    Phase.INTRO: (
        "Kelime Sınıflandırma\n\n"
        "Başlamak için \"Space/Boşluk\" tuşuna basınız."
    ),
    Phase.INSTRUCTIONS: (
        "Değerli Katılımcı,\n\n"
        "Bu çalışma kelimeleri sınıflandırma sürenizi ölçmeyi amaçlamaktadır.\n\n"
        "Deney sırasında ekranda kelimeler göreceksiniz.\n"
        "Göreviniz, kelimenin anlamına göre hızlı bir şekilde yanıt vermektir.\n\n"
        "Karşınıza çıkan kelime pozitif bir duygu içeriyor ise klavyede\n"
        "Sağ ok tuşu (->) negatif bir duygu içeriyor ise Sol ok tuşuna (<-) olabildiğince\n"
        "hızlı bir şekilde basmanız ve bir sonraki kelimeye geçmenizdir.\n\n"
        "Hazır olduğunuzda, 'Space/Boşluk' tuşuna basarak deneye başlayabilirsiniz."
    ),
    Phase.PRACTICE_COMPLETE: (
        "Deneme testi tamamlanmıştır.\n\n"
        "Asıl teste başlamak için \"Space/Boşluk\" tuşuna basınız."
    ),
    Phase.COMPLETED: "Test tamamlandı!\nKatılımınız için teşekkürler.",
}


def key_bindings(keys: KeyBindingConfig) -> Dict[str, Signal]:
    """
    Map typed key names to signals.

    Raises
    ------
    ValueError
        If two signals share a key
    """
    bindings = {
        keys.confirm.strip().lower(): Signal.CONFIRM,
        keys.positive.strip().lower(): Signal.POSITIVE,
        keys.negative.strip().lower(): Signal.NEGATIVE,
    }
    if len(bindings) != len(Signal):
        raise ValueError(f"Key bindings must be distinct: {keys}")
    reserved = set(bindings) & set(QUIT_COMMANDS + (RETRY_COMMAND,))
    if reserved:
        raise ValueError(f"Keys {sorted(reserved)} are reserved for session commands")
    return bindings


class ConsoleSession:
    """Runs a PhaseController from line-based terminal input."""

    def __init__(
        self,
        controller: PhaseController,
        keys: Optional[KeyBindingConfig] = None,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.controller = controller
        self.keys = keys or KeyBindingConfig()
        self.bindings = key_bindings(self.keys)
        self.input = input_fn
        self.output = output_fn

        controller.subscribe_phase(self._on_phase)
        controller.subscribe_notice(self._on_notice)
        controller.loader.subscribe(self._on_loading)

    def _on_phase(self, phase: Phase) -> None:
        screen = SCREENS.get(phase)
        if screen:
            self.output(screen)
        if phase is Phase.LOAD_ERROR:
            self.output(f"Type '{RETRY_COMMAND}' to try again or 'quit' to stop.")

    def _on_notice(self, message: str) -> None:
        self.output(f"! {message}")
        if self.controller.can_retry_submission:
            self.output(f"Type '{RETRY_COMMAND}' to send the results again or 'quit' to stop.")

    def _on_loading(self, status: LoadingStatus) -> None:
        if status.state is LoadState.LOADING:
            self.output("Loading words...")
        elif status.state is LoadState.RETRYING:
            self.output(f"Loading failed, retrying ({status.retry})...")

    def _key_hint(self) -> str:
        return (
            f"[{self.keys.confirm}] continue  "
            f"[{self.keys.positive}] positive  "
            f"[{self.keys.negative}] negative"
        )

    def _show_stimulus(self) -> None:
        stimulus = self.controller.current_stimulus
        if stimulus is not None:
            self.output(f"\n    {stimulus.word}\n")

    def run(self) -> bool:
        """
        Run the session until it completes or the participant quits.

        Returns
        -------
        bool
            Whether the session reached the completed phase
        """
        controller = self.controller
        self.output(SCREENS[Phase.AWAITING_IDENTIFIER])

        try:
            while controller.phase is not Phase.COMPLETED and not controller.torn_down:
                self._step()
        except EOFError:
            logger.info("Input closed")
            controller.teardown()

        return controller.phase is Phase.COMPLETED

    def _step(self) -> None:
        controller = self.controller
        phase = controller.phase

        if phase is Phase.AWAITING_IDENTIFIER:
            raw = self.input("Email: ")
            if raw.strip().lower() in QUIT_COMMANDS:
                controller.teardown()
            else:
                controller.submit_identifier(raw)
            return

        command = self.input("> ").strip().lower()
        if command in QUIT_COMMANDS:
            controller.teardown()
            return

        if command == RETRY_COMMAND:
            if phase is Phase.LOAD_ERROR:
                controller.retry_load()
            elif controller.can_retry_submission:
                controller.retry_submission()
            else:
                self.output("Nothing to retry.")
            return

        signal = self.bindings.get(command)
        if signal is None:
            self.output(f"Unknown key '{command}'. {self._key_hint()}")
            return

        controller.handle(signal)
        self._show_stimulus()
