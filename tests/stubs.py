"""Provider doubles shared by the test modules."""

from pushgate.fcm.provider import SendOutcome, TopicManagementError
from pushgate.utils.exceptions import ProviderError


class StubProvider:
    """Push provider double that records every call and fails on request."""

    def __init__(
        self,
        failing_tokens: set[str] | None = None,
        fail_topic_calls: bool = False,
        fail_sends: bool = False,
    ):
        self.failing_tokens = set(failing_tokens or ())
        self.fail_topic_calls = fail_topic_calls
        self.fail_sends = fail_sends
        self.sent = []
        self.batches = []
        self.multicasts = []
        self.topic_calls = []

    def send(self, message):
        self.sent.append(message)
        if self.fail_sends or message.token in self.failing_tokens:
            raise ProviderError("send rejected", {"target": message.target})
        return f"msg-{len(self.sent)}"

    def send_batch(self, messages):
        self.batches.append(list(messages))
        if self.fail_sends:
            raise ProviderError("batch rejected")
        return [self._outcome(message.target) for message in messages]

    def send_multicast(self, message):
        self.multicasts.append(message)
        if self.fail_sends:
            raise ProviderError("multicast rejected")
        return [self._outcome(token) for token in message.tokens]

    def manage_topic_subscription(self, tokens, topic, subscribe):
        self.topic_calls.append((list(tokens), topic, subscribe))
        if self.fail_topic_calls:
            raise ProviderError("topic call rejected")
        return [
            TopicManagementError(index=index, reason="registration-token-not-registered")
            for index, token in enumerate(tokens)
            if token in self.failing_tokens
        ]

    def _outcome(self, target):
        if target in self.failing_tokens:
            return SendOutcome(error="registration-token-not-registered")
        return SendOutcome(message_id=f"id-{target}")
