import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class EftpLogger(logging.LoggerAdapter):
    """
    The ``eftp`` logger, set up for the command line and fetch jobs.

    The library modules log to ``logging.getLogger('eftp')`` directly; creating
    an EftpLogger attaches the handlers that make that output visible. It can
    be passed anywhere a logger is expected.
    """

    def __init__(self, log_dir="logs", log_level=logging.INFO):
        super().__init__(logging.getLogger('eftp'), {})
        self.logger.setLevel(log_level)

        # replace handlers left by an earlier EftpLogger
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

        handlers = [logging.StreamHandler()]

        # log_dir=None keeps output on the console only
        self.log_file = None
        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            self.log_file = log_path / f"eftp_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            handlers.append(logging.FileHandler(self.log_file, encoding='utf-8'))

        formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        for handler in handlers:
            handler.setLevel(log_level)
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_job_start(self, job_name):
        self.info('=' * 80)
        self.info(f"Starting fetch job: {job_name}")
        self.info('=' * 80)

    def log_job_end(self, job_name, duration):
        self.info('=' * 80)
        self.info(f"Completed fetch job: {job_name} in {duration:.2f} seconds")
        self.info('=' * 80)

    def get_log_file_path(self):
        return str(self.log_file) if self.log_file else None
