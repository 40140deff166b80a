"""Records lifecycle calls made on sample services, in order."""

EVENTS = []


def record(name, hook):
    EVENTS.append((name, hook))


def clear():
    EVENTS.clear()
