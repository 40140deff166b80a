from servicebay import service


@service(name="extra")
class Extra:
    pass


class NotAService:
    pass
