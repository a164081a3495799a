"""
eftp command line
List and fetch files from an FTP server configured through config.json and .env
"""

import sys
import time
import argparse
import logging

import eftp
from eftp.scheduler import FetchJob, FetchScheduler
from eftp.utils.config_loader import ConfigLoader
from eftp.utils.logger import EftpLogger


def open_connection(config_loader):
    """Connect with the configured FTP settings"""
    ftp_config = config_loader.get_ftp_config()
    return eftp.connect(ftp_config.get('host'), ftp_config.get('port', 21), timeout=ftp_config.get('timeout'))


def login(config_loader, connection):
    ftp_config = config_loader.get_ftp_config()
    return eftp.authenticate(connection, ftp_config.get('username', ''), ftp_config.get('password', ''))


def close_session(result):
    if result.is_ok():
        result.value.close()


def run_list(config_loader, logger, path):
    connection = open_connection(config_loader)
    try:
        result = eftp.list_files(login(config_loader, connection), path)
    finally:
        close_session(connection)

    if result.is_err():
        logger.error(f"Listing failed: {result}")
        return 1
    for name in result.value:
        print(name)
    return 0


def run_fetch(config_loader, logger, remote_files, dest, transfer_type):
    dest = dest or config_loader.get_fetch_config()['local_dir']
    connection = open_connection(config_loader)
    try:
        result = eftp.fetch(login(config_loader, connection), remote_files, dest, transfer_type)
    finally:
        close_session(connection)

    if result.is_err():
        logger.error(f"Fetch failed: {result}")
        return 1
    for path in result.value:
        print(path)
    return 0


def run_once(config_loader, logger):
    start_time = time.time()
    logger.log_job_start("configured files")
    job = FetchJob(config_loader, logger)
    result = job.run()
    logger.log_job_end("configured files", time.time() - start_time)
    return 1 if result.is_err() else 0


def run_check(config_loader, logger):
    if config_loader.check_ftp_config():
        logger.info("Configuration OK")
        return 0
    logger.error("Configuration check failed")
    return 1


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        prog='eftp',
        description='Fetch files from an FTP server',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list /pub                       # List names in /pub
  %(prog)s fetch /pub/a.csv /pub/b.csv     # Fetch two files into the configured directory
  %(prog)s run                             # Fetch the files listed in config.json once
  %(prog)s schedule --now                  # Fetch now, then on schedule
  %(prog)s check                           # Validate settings and test the connection
        """
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to configuration file (default: config/config.json when present)'
    )
    parser.add_argument(
        '--log-dir',
        default=None,
        help='Also write a timestamped log file into this directory'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=eftp.version())

    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='List file names in a remote directory')
    list_parser.add_argument('path', nargs='?', default=None, help='Remote directory (default: login directory)')

    fetch_parser = subparsers.add_parser('fetch', help='Fetch remote files')
    fetch_parser.add_argument('remote_files', nargs='+', help='Remote file paths')
    fetch_parser.add_argument('--dest', default=None, help='Local directory (default: fetch.local_dir)')
    fetch_parser.add_argument('--ascii', action='store_true', help='Use ASCII instead of binary transfers')

    subparsers.add_parser('run', help='Fetch the configured files once')

    schedule_parser = subparsers.add_parser('schedule', help='Fetch the configured files on a schedule')
    schedule_parser.add_argument(
        '--now',
        action='store_true',
        help='Run the fetch immediately, in addition to scheduled runs'
    )

    subparsers.add_parser('check', help='Validate configuration and test the connection')

    args = parser.parse_args(argv)

    logger = EftpLogger(log_dir=args.log_dir, log_level=logging.DEBUG if args.verbose else logging.INFO)
    if logger.get_log_file_path():
        logger.debug(f"Logging to {logger.get_log_file_path()}")

    try:
        config_loader = ConfigLoader(args.config, logger=logger)

        if args.command == 'list':
            return run_list(config_loader, logger, args.path)
        if args.command == 'fetch':
            transfer_type = 'ascii' if args.ascii else 'binary'
            return run_fetch(config_loader, logger, args.remote_files, args.dest, transfer_type)
        if args.command == 'run':
            return run_once(config_loader, logger)
        if args.command == 'schedule':
            FetchScheduler(config_loader, logger).start(run_immediately=args.now)
            return 0
        return run_check(config_loader, logger)

    except Exception as e:
        logger.error(f"FATAL ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
