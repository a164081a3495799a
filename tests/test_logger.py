import logging

from eftp.utils.logger import EftpLogger


def test_console_only_without_log_dir():
    logger = EftpLogger(log_dir=None)
    assert logger.get_log_file_path() is None
    assert len(logging.getLogger('eftp').handlers) == 1


def test_writes_log_file(tmp_path):
    logger = EftpLogger(log_dir=tmp_path / 'logs')
    logger.log_job_start('nightly')
    logger.warning('Local file exists')

    log_file = tmp_path / 'logs' / logger.log_file.name
    assert log_file.name.startswith('eftp_')
    contents = log_file.read_text(encoding='utf-8')
    assert 'eftp - INFO - Starting fetch job: nightly' in contents
    assert 'eftp - WARNING - Local file exists' in contents


def test_handlers_are_not_duplicated(tmp_path):
    EftpLogger(log_dir=tmp_path)
    EftpLogger(log_dir=tmp_path)
    assert len(logging.getLogger('eftp').handlers) == 2


def test_library_records_reach_the_log_file(tmp_path):
    logger = EftpLogger(log_dir=tmp_path)
    assert logger.logger is logging.getLogger('eftp')

    logging.getLogger('eftp').warning('Download of /pub/a.txt failed')
    logger.log_job_end('nightly', 1.5)

    contents = logger.log_file.read_text(encoding='utf-8')
    assert 'eftp - WARNING - Download of /pub/a.txt failed' in contents
    assert 'Completed fetch job: nightly in 1.50 seconds' in contents


def test_debug_hidden_at_info_level(tmp_path):
    logger = EftpLogger(log_dir=tmp_path)
    logger.debug('connecting')
    assert 'connecting' not in logger.log_file.read_text(encoding='utf-8')
