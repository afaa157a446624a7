import shlex
import subprocess
from typing import Sequence

from fetchexec.internal.constants import REBOOT_REQUIRED_EXIT_CODE
from fetchexec.internal.logging import get_logger
from fetchexec.kernel.contracts import ExitClassification, ExitStatus, ProcessRunner
from fetchexec.kernel.errors import ProcessExitError, ProcessStartError


def classify_exit_code(code: int) -> ExitClassification:
    if code == 0:
        return ExitClassification(ExitStatus.SUCCESS, 0)
    if code == REBOOT_REQUIRED_EXIT_CODE:
        return ExitClassification(ExitStatus.REBOOT_REQUIRED, code)
    return ExitClassification(ExitStatus.FAILURE, code)


class SubprocessRunner(ProcessRunner):
    """
    Runs an installer as a child process and waits for it. The child shares
    our stdio so installer output reaches the user directly.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def run(self, argv: Sequence[str]) -> ExitClassification:
        argv = list(argv)
        if not argv:
            return ExitClassification(ExitStatus.SUCCESS, 0)

        self.logger.info("Running", command=shlex.join(argv))

        try:
            with subprocess.Popen(argv) as process:
                code = process.wait()
        except OSError as e:
            self.logger.error("Failed to start process", command=argv[0], error=str(e))
            raise ProcessStartError(argv, str(e)) from e

        result = classify_exit_code(code)
        if result.status is ExitStatus.FAILURE:
            self.logger.error("Process failed", command=argv[0], exit_code=code)
            raise ProcessExitError(argv, code)

        if result.reboot_required:
            self.logger.warning("Exit code 3010, needs reboot to complete install", command=argv[0])
        return result
