import json
import logging
import os
import re
from pathlib import Path
from dotenv import load_dotenv

import eftp.client as client

DEFAULT_CONFIG_FILE = "config/config.json"


class ConfigLoader:
    """Load and manage configuration from JSON and environment variables"""

    def __init__(self, config_file=None, logger=None, env_file='config/.env'):
        self.logger = logger or logging.getLogger('eftp')

        # Load environment variables
        env_file = Path(env_file)
        if env_file.exists():
            self.logger.info(f"Loading environment from: {env_file}")
            load_dotenv(dotenv_path=env_file)
        else:
            self.logger.debug("No .env file found in config/, trying default locations")
            load_dotenv()

        # Only an explicitly requested config file has to exist
        self.required = config_file is not None
        self.config_file = Path(config_file or DEFAULT_CONFIG_FILE)
        self.config = self._load_config()

    def _load_config(self):
        """Load configuration from JSON file"""
        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                config = json.load(f)
        elif self.required:
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        else:
            self.logger.debug(f"No configuration file at {self.config_file}, using defaults")
            config = {}

        file_ftp = config.get('ftp', {})

        # Credentials are read from the environment only, never from config.json
        config['ftp'] = {
            'host': os.getenv('FTP_HOSTNAME', file_ftp.get('host', '')),
            'port': os.getenv('FTP_PORT', file_ftp.get('port', 21)),
            'username': os.getenv('FTP_USERNAME', ''),
            'password': os.getenv('FTP_PASSWORD', ''),
            'timeout': int(os.getenv('FTP_TIMEOUT', file_ftp.get('timeout', 30))),
        }

        if not all([config['ftp']['host'], config['ftp']['username'], config['ftp']['password']]):
            self.logger.warning("FTP credentials not fully configured in environment variables")

        return config

    def get_ftp_config(self):
        """Get FTP connection settings"""
        return self.config.get('ftp', {})

    def get_fetch_config(self):
        """Get the files to fetch and where to put them"""
        fetch = self.config.get('fetch', {})
        remote_files = fetch.get('remote_files', [])
        # a single path may be given without the list around it
        if isinstance(remote_files, str):
            remote_files = [remote_files]
        return {
            'remote_files': remote_files,
            'local_dir': fetch.get('local_dir', 'data/downloads'),
            'transfer_type': fetch.get('transfer_type', 'binary'),
        }

    def get_schedule_time(self):
        """Get daily schedule time"""
        return self.config.get('schedule', {}).get('daily_time', '02:00')

    def get_schedule_interval(self):
        """Get the run interval in minutes, None when running daily"""
        return self.config.get('schedule', {}).get('interval_minutes')

    def validate_ftp_credentials(self):
        """
        Validate FTP credentials and connection settings.
        Returns tuple of (is_valid, messages)
        """
        ftp_config = self.get_ftp_config()
        messages = []
        required_fields = {
            'host': 'FTP_HOSTNAME',
            'username': 'FTP_USERNAME',
            'password': 'FTP_PASSWORD'
        }

        missing = []
        for field, env_var in required_fields.items():
            if not ftp_config.get(field):
                missing.append(f"{field} (env: {env_var})")

        if missing:
            messages.append(f"Missing required FTP credentials: {', '.join(missing)}")

        host = ftp_config.get('host', '')
        if host and not self._is_valid_hostname(host):
            messages.append(f"Invalid FTP host format: {host}")

        port = ftp_config.get('port', 21)
        port_ok = self._is_valid_port(port)
        if not port_ok:
            messages.append(f"Invalid port number: {port}")

        messages.append("FTP Configuration Summary:")
        messages.append(f"Host: {host}")
        messages.append(f"Username: {ftp_config.get('username', '')}")
        messages.append(f"Port: {port}")
        messages.append(f"Timeout: {ftp_config.get('timeout', 30)}s")

        is_valid = len(missing) == 0 and self._is_valid_hostname(host) and port_ok
        return is_valid, messages

    def _is_valid_hostname(self, hostname):
        """Validate hostname format"""
        if not hostname:
            return False
        if len(hostname) > 255:
            return False
        if hostname[-1] == ".":
            hostname = hostname[:-1]
        allowed = re.compile(r"(?!-)[A-Z\d-]{1,63}(?<!-)$", re.IGNORECASE)
        return all(allowed.match(x) for x in hostname.split("."))

    def _is_valid_port(self, port):
        try:
            port = int(port)
        except (TypeError, ValueError):
            return False
        return 0 < port < 65536

    def test_ftp_connection(self, ftp_config=None, session_factory=None):
        """
        Connect, log in and list the current directory.
        Returns tuple of (success, message)
        """
        ftp_config = ftp_config or self.get_ftp_config()
        self.logger.info(f"Testing FTP connection to {ftp_config.get('host')}:{ftp_config.get('port', 21)}")

        session = client.connect(
            ftp_config.get('host'),
            ftp_config.get('port', 21),
            timeout=ftp_config.get('timeout', 30),
            session_factory=session_factory,
        )
        try:
            result = client.authenticate(session, ftp_config.get('username', ''), ftp_config.get('password', ''))
            result = client.list_files(result)
        finally:
            if session.is_ok():
                session.value.close()

        if result.is_err():
            message = f"FTP connection test failed: {result}"
            self.logger.error(message)
            return False, message

        self.logger.info(f"FTP connection test successful ({len(result.value)} entries in login directory)")
        return True, "Connection test successful"

    def check_ftp_config(self, session_factory=None):
        """
        Validate the FTP settings and, when they look usable, test the connection.
        Returns True only if both pass.
        """
        is_valid, messages = self.validate_ftp_credentials()

        for msg in messages:
            if "Missing" in msg or "Invalid" in msg:
                self.logger.error(msg)
            else:
                self.logger.info(msg)

        if not is_valid:
            self.logger.warning("FTP configuration validation failed")
            return False

        self.logger.info("FTP configuration validated successfully")
        connection_ok, _ = self.test_ftp_connection(session_factory=session_factory)
        return connection_ok
