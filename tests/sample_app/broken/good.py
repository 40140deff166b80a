from servicebay import singleton


@singleton
class Fine:
    pass
