# Errors raised by incident operations; the bot turns them into chat replies


class IncidentBotError(RuntimeError):
    pass


class AlreadyActiveIncidentError(IncidentBotError):
    def __init__(self, channel_id: str) -> None:
        super().__init__(
            "There is already an ongoing incident in this channel. If you have "
            "two ongoing incidents, invite me in to a different room to start "
            "an additional incident."
        )
        self.channel_id = channel_id


class NoActiveIncidentError(IncidentBotError):
    def __init__(self, channel_id: str) -> None:
        super().__init__("There are no active incidents in this channel.")
        self.channel_id = channel_id


class UnknownRoleError(IncidentBotError):
    def __init__(self, role: str) -> None:
        super().__init__(f"Unknown role: {role}")
        self.role = role


class ConfigError(IncidentBotError):
    pass
