from phasetrack.models.enums import TemplateKind

_POSTTEST_LABELS = {
    "posttest1": "post-test",
    "posttest2": "second follow-up test",
    "posttest3": "final follow-up test",
}


def render(template: TemplateKind, params: dict, team_name: str) -> tuple[str, str]:
    """Return (subject, body) for a reminder."""
    user_id = params["user_id"]

    if template == TemplateKind.TRAINING_REMINDER:
        day = params["day"]
        subject = f"Training Day {day} Reminder"
        body = (
            f"Hello {user_id},\n\n"
            f"This is a reminder that it's time for your Day {day} training session. "
            f"Please log in to complete your training.\n\n"
            f"Best regards,\n{team_name}"
        )
        return subject, body

    if template == TemplateKind.POSTTEST_REMINDER:
        label = _POSTTEST_LABELS.get(params.get("phase", "posttest1"), "post-test")
        subject = f"{label[0].upper()}{label[1:]} Reminder"
        body = (
            f"Hello {user_id},\n\n"
            f"It's time for your {label} assessment. "
            f"Please log in to complete your evaluation.\n\n"
            f"Best regards,\n{team_name}"
        )
        return subject, body

    raise ValueError(f"Unknown template: {template}")
