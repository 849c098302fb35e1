from incidents.sheets import MirrorWriteError


class RecordingMirror:
    """In-memory stand-in for the spreadsheet mirror."""

    rows = {}
    fail_with = None
    missing = []

    @classmethod
    def reset(cls):
        cls.rows = {}
        cls.fail_with = None
        cls.missing = []

    def missing_configuration(self):
        return list(self.missing)

    def append(self, sheet, row):
        if self.fail_with:
            raise MirrorWriteError(self.fail_with)
        self.rows.setdefault(sheet, []).append(list(row))

    def read_rows(self, sheet):
        return [list(row) for row in self.rows.get(sheet, [])]

    def check(self):
        if self.fail_with:
            raise MirrorWriteError(self.fail_with)


class FailingEmailBackend:
    """Mail backend whose every send fails like an unreachable SMTP host."""

    def __init__(self, *args, **kwargs):
        pass

    def send_messages(self, messages):
        raise ConnectionRefusedError("SMTP host unreachable")
