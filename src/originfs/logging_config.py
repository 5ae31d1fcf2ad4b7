import logging
import logging.config
import os
import sys


def setup_logging(
    log_directory: str,
    base_logger_name: str = "originfs",
    level=logging.INFO,
    log_file_name: str = 'originfs.log',
    console_output: bool = True
):
    """
    Configure file and console logging for the `originfs` logger tree.

    Args:
        log_directory (str): Directory for the log files; created if missing.
        base_logger_name (str): Root logger of the application.
        level (int | str): Minimum level for the file and console handlers.
        log_file_name (str): Name of the main log file.
        console_output (bool): Also log to stderr through colorlog.
    """
    os.makedirs(log_directory, exist_ok=True)
    log_file_path = os.path.join(log_directory, log_file_name)

    if isinstance(level, str):
        numeric_level = getattr(logging, level.upper(), logging.INFO)
    else:
        numeric_level = level

    LOGGING_CONFIG = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'color_console': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(levelname)s - %(name)s - %(message)s%(reset)s',
                'log_colors': {
                    'DEBUG':    'cyan',
                    'INFO':     'green',
                    'WARNING':  'yellow',
                    'ERROR':    'red',
                    'CRITICAL': 'bold_red',
                }
            },
        },
        'handlers': {
            'file': {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': numeric_level,
                'formatter': 'standard',
                'filename': log_file_path,
                'maxBytes': 10485760, # 10MB
                'backupCount': 5,
                'encoding': 'utf8'
            },
            'console': {
                'class': 'logging.StreamHandler',
                'level': numeric_level,
                'formatter': 'color_console',
                # stdout carries command output
                'stream': sys.stderr
            },
            'error_file': {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': logging.ERROR,
                'formatter': 'standard',
                'filename': os.path.join(log_directory, 'originfs_error.log'),
                'maxBytes': 10485760, # 10MB
                'backupCount': 2,
                'encoding': 'utf8'
            }
        },
        'loggers': {
            base_logger_name: {
                'handlers': ['file', 'error_file'],
                'level': numeric_level,
                'propagate': False
            },
        },
        'root': {
            'handlers': ['file', 'error_file'],
            'level': logging.ERROR,
        }
    }

    if console_output:
        LOGGING_CONFIG['loggers'][base_logger_name]['handlers'].append('console')
        LOGGING_CONFIG['root']['handlers'].append('console')

    logging.config.dictConfig(LOGGING_CONFIG)

    if numeric_level > logging.DEBUG:
        for logger_name in ['httpx', 'httpcore', 'asyncio']:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    main_logger = logging.getLogger(base_logger_name)
    main_logger.debug(f"Logging configured. Level: {logging.getLevelName(numeric_level)}, file: {log_file_path}")
