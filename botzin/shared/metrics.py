# START OF FILE: botzin/shared/metrics.py


class Metrics:
    """In-process counters shown by !status, !vendas and /health."""

    def __init__(self):
        self.message_count = 0
        self.command_count = 0
        self.total_sales = 0

    def log_message(self):
        self.message_count += 1

    def log_command(self):
        self.command_count += 1

    def increment_sales(self):
        self.total_sales += 1


metrics = Metrics()

# END OF FILE: botzin/shared/metrics.py
