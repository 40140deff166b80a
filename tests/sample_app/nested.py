from servicebay import singleton


class Outer:
    @singleton
    class Inner:
        pass

    class Plain:
        pass
