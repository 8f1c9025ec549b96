import logging
from typing import List, Sequence

from net_loginer.controller.auth_flow import AddressOutcome, AuthFlow
from net_loginer.model.auth_result import ACCOUNT_FAILURES, Success, describe

logger = logging.getLogger(__name__)


class LoginFlow:
    """Runs ``AuthFlow`` for each address in order, one address at a time.

    An exhausted verify-code budget only ends that address. An account failure
    (unknown user, wrong password, locked) stops the remaining addresses unless
    ``abort_on_failure`` is off. Transport and parse errors always propagate.
    """

    def __init__(self, auth_flow: AuthFlow, addresses: Sequence[str], abort_on_failure: bool = True) -> None:
        self.auth_flow = auth_flow
        self.addresses = list(addresses)
        self.abort_on_failure = abort_on_failure

    def run(self) -> List[AddressOutcome]:
        outcomes: List[AddressOutcome] = []
        for ip_address in self.addresses:
            logger.info('Logging in for IP address: %s', ip_address)
            outcome = self.auth_flow.run(ip_address)
            outcomes.append(outcome)

            if self.abort_on_failure and isinstance(outcome.result, ACCOUNT_FAILURES):
                skipped = self.addresses[len(outcomes):]
                if skipped:
                    logger.error('%s, skipping %s', describe(outcome.result), ', '.join(skipped))
                break
        return outcomes


def exit_code(outcomes: List[AddressOutcome]) -> int:
    if outcomes and all(isinstance(o.result, Success) for o in outcomes):
        return 0
    return 1
