import logging
import time
from pathlib import Path

import schedule

import eftp.client as client
from eftp.result import Ok


class FetchJob:
    """Fetch the files listed in the configuration over one FTP session."""

    def __init__(self, config_loader, logger=None, session_factory=None):
        self.config_loader = config_loader
        self.logger = logger or logging.getLogger('eftp')
        self.session_factory = session_factory

    def run(self):
        """
        Connect, log in and fetch every configured remote file.

        Returns:
            The Result of the fetch (Ok with the saved paths, or the first Err)
        """
        ftp_config = self.config_loader.get_ftp_config()
        fetch_config = self.config_loader.get_fetch_config()
        remote_files = fetch_config['remote_files']

        if not remote_files:
            self.logger.warning("No remote files configured, nothing to fetch")
            return Ok([])

        local_dir = Path(fetch_config['local_dir'])
        local_dir.mkdir(parents=True, exist_ok=True)

        start_time = time.time()
        self.logger.info(f"Fetching {len(remote_files)} files from {ftp_config.get('host')} into {local_dir}")

        session = client.connect(
            ftp_config.get('host'),
            ftp_config.get('port', 21),
            timeout=ftp_config.get('timeout'),
            session_factory=self.session_factory,
        )
        try:
            result = client.authenticate(session, ftp_config.get('username', ''), ftp_config.get('password', ''))
            result = client.fetch(result, remote_files, str(local_dir), fetch_config['transfer_type'])
        finally:
            if session.is_ok():
                session.value.close()

        duration = time.time() - start_time
        if result.is_err():
            self.logger.error(f"Fetch job failed after {duration:.2f} seconds: {result}")
        else:
            for path in result.value:
                self.logger.info(f"Saved {path}")
            self.logger.info(f"Fetch job finished in {duration:.2f} seconds")
        return result


class FetchScheduler:
    """Run the configured fetch job daily, or every few minutes"""

    def __init__(self, config_loader, logger=None, session_factory=None):
        self.config_loader = config_loader
        self.logger = logger or logging.getLogger('eftp')
        self.job = FetchJob(config_loader, self.logger, session_factory=session_factory)
        self.scheduler = schedule.Scheduler()
        self.schedule_time = config_loader.get_schedule_time()
        self.interval_minutes = config_loader.get_schedule_interval()

    def run_fetch_job(self):
        """Execute the fetch job, logging rather than raising on failure"""
        self.logger.info("Fetch job triggered")
        try:
            self.job.run()
        except Exception as e:
            # keep the scheduler alive for the next run
            self.logger.error(f"Fetch job crashed: {e}")

    def schedule_jobs(self):
        if self.interval_minutes:
            self.logger.info(f"Scheduled to run every {self.interval_minutes} minutes")
            return self.scheduler.every(int(self.interval_minutes)).minutes.do(self.run_fetch_job)

        self.logger.info(f"Scheduled to run daily at {self.schedule_time}")
        return self.scheduler.every().day.at(self.schedule_time).do(self.run_fetch_job)

    def start(self, run_immediately=False, poll_seconds=60):
        """
        Start the scheduler

        Args:
            run_immediately: If True, run the fetch job once before waiting
            poll_seconds: How often pending jobs are checked
        """
        self.schedule_jobs()

        if run_immediately:
            self.logger.info("Running fetch job immediately...")
            self.run_fetch_job()

        self.logger.info("Scheduler is running. Press Ctrl+C to stop.")

        try:
            while True:
                self.scheduler.run_pending()
                time.sleep(poll_seconds)
        except KeyboardInterrupt:
            self.logger.info("Scheduler stopped by user.")
