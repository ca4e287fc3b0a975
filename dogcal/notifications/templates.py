"""WhatsApp message templates, rendered with Jinja2.

Every template receives ``recipient_name``, ``owner_name``, ``pup_name``,
``start_at``, ``end_at``, ``event_name`` and ``link``; some use extra
context documented next to them.
"""
from datetime import datetime

from jinja2 import DictLoader, Environment, StrictUndefined


def long_datetime(value: datetime) -> str:
    """Format as "Monday, January 15 at 2:00 PM"."""
    return f"{value:%A, %B} {value.day} at {short_time(value)}"


def short_time(value: datetime) -> str:
    """Format as "2:00 PM"."""
    return value.strftime("%I:%M %p").lstrip("0")


_WINDOW = """\
📅 {{ start_at|long_datetime }}
⏰ Until {{ end_at|short_time }}
{% if event_name %}
📝 {{ event_name }}
{% endif %}
"""

_SERIES = """\
{% if occurrences > 1 %}
🔁 Repeats {{ frequency }}, {{ occurrences }} times in total
{% endif %}
"""

TEMPLATES = {
    "_window": _WINDOW,
    "_series": _SERIES,
    # Friends of the pup. Extra: owner_notes, occurrences, frequency
    "hangout_created": """\
🐕 DogCal: New Hangout Available!

Hi {{ recipient_name }}!

{{ owner_name }} needs someone to hang out with {{ pup_name }} 🐾

{% include "_window" %}
{% include "_series" %}
{% if owner_notes %}

💬 Notes: {{ owner_notes }}
{% endif %}

👉 View & assign yourself here:
{{ link }}

Thanks for being a pup friend!""",
    # Assigned friend. Extra: owner_notes, occurrences, frequency
    "hangout_confirmed": """\
🐕 DogCal: You're Confirmed!

Hi {{ recipient_name }}!

{{ owner_name }} has booked you to hang out with {{ pup_name }} 🐾

{% include "_window" %}
{% include "_series" %}
{% if owner_notes %}

💬 Notes: {{ owner_notes }}
{% endif %}

👉 View details here:
{{ link }}""",
    # Assigned friend after a reschedule.
    "hangout_reconfirm": """\
🐕 DogCal: Hangout Time Changed

Hi {{ recipient_name }}!

Your hangout with {{ pup_name }} has moved to a new time 🐾

{% include "_window" %}

Please check you can still make it:
{{ link }}""",
    # Friend removed from a hangout by the owner.
    "hangout_reassigned": """\
🐕 DogCal: Hangout Update

Hi {{ recipient_name }}!

{{ owner_name }} has changed the plans and you are no longer booked to hang out with {{ pup_name }}.

{% include "_window" %}

👉 See other hangouts here:
{{ link }}""",
    # Owner, after a friend claimed an open hangout. Extra: friend_name
    "hangout_assigned": """\
🐕 DogCal: Hangout Assigned!

Hi {{ recipient_name }}!

Good news! {{ friend_name }} will hang out with {{ pup_name }} 🐾

{% include "_window" %}

👉 View details here:
{{ link }}

Thanks for using DogCal!""",
    # Owner, after the assigned friend stepped back. Extra: friend_name
    "hangout_unassigned": """\
🐕 DogCal: Hangout Needs a Friend

Hi {{ recipient_name }}!

{{ friend_name }} can no longer hang out with {{ pup_name }}. The hangout is open again.

{% include "_window" %}

👉 View details here:
{{ link }}""",
    # Assigned friend, when the owner deletes the hangout.
    "hangout_cancelled": """\
🐕 DogCal: Hangout Cancelled

Hi {{ recipient_name }}!

{{ owner_name }} has cancelled your hangout with {{ pup_name }}.

{% include "_window" %}

No need to come over. Thanks for being a pup friend!""",
    # Friends of the pup, when an open hangout is deleted.
    "hangout_deleted": """\
🐕 DogCal: Hangout Removed

Hi {{ recipient_name }}!

{{ owner_name }} no longer needs someone to hang out with {{ pup_name }} at this time.

{% include "_window" %}

👉 See other hangouts here:
{{ link }}""",
    # Owner. Extra: friend_name, friend_comment, occurrences, frequency
    "suggestion_created": """\
🐕 DogCal: New Hangout Suggestion!

Hi {{ recipient_name }}!

{{ friend_name }} suggested a time to hang out with {{ pup_name }} 🐾

{% include "_window" %}
{% include "_series" %}
{% if friend_comment %}

💬 {{ friend_name }} says: {{ friend_comment }}
{% endif %}

👉 Review & approve here:
{{ link }}

You can approve or reject this suggestion.""",
    # Suggesting friend. Extra: owner_comment
    "suggestion_approved": """\
🐕 DogCal: Suggestion Approved!

Hi {{ recipient_name }}!

Great news! {{ owner_name }} approved your hangout suggestion with {{ pup_name }} 🐾

{% include "_window" %}
{% if owner_comment %}

💬 {{ owner_name }} says: {{ owner_comment }}
{% endif %}

👉 View details here:
{{ link }}

Thanks for suggesting a time!""",
    # Suggesting friend. Extra: owner_comment
    "suggestion_rejected": """\
🐕 DogCal: Suggestion Declined

Hi {{ recipient_name }}!

{{ owner_name }} can't take up your hangout suggestion with {{ pup_name }} this time.

{% include "_window" %}
{% if owner_comment %}

💬 {{ owner_name }} says: {{ owner_comment }}
{% endif %}

Thanks for offering!""",
    # Owner, when the friend withdraws a pending suggestion. Extra: friend_name
    "suggestion_deleted": """\
🐕 DogCal: Suggestion Withdrawn

Hi {{ recipient_name }}!

{{ friend_name }} withdrew their suggestion to hang out with {{ pup_name }}.

{% include "_window" %}

👉 Review other suggestions here:
{{ link }}""",
}

environment = Environment(
    loader=DictLoader(TEMPLATES),
    undefined=StrictUndefined,
    trim_blocks=True,
    keep_trailing_newline=False,
    autoescape=False,  # Plain-text WhatsApp bodies
)
environment.filters["long_datetime"] = long_datetime
environment.filters["short_time"] = short_time


def render(kind: str, **context) -> str:
    return environment.get_template(kind).render(**context).strip()
