"""
命令行入口
"""
import argparse
import sys
from typing import List, Optional, TextIO

from .exceptions import CertificateDecodeError, ConfigurationError
from .lambda_handler import CertificateMonitor
from .services.config_validator import ConfigValidator
from .services.domain_config import TargetListManager
from .services.logger import LoggerService
from .services.pem_reader import load_certificate_file, report_from_pem
from .services.report_writer import render


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='certcheck',
        description='检查主机的TLS证书有效期并输出JSON/YAML报告。'
                    '标准输入不是终端时从标准输入读取目标。'
    )
    parser.add_argument('-H', '--hosts', nargs='*', default=[], metavar='HOST[:PORT]',
                        help='要检查的 host:port 列表')
    parser.add_argument('-c', '--certfile', help='要解析的PEM证书文件')
    parser.add_argument('-t', '--timeout', type=float, default=10, help='连接超时（秒），默认10')
    parser.add_argument('-w', '--warn-at-days', type=int, default=30, metavar='WARNAT',
                        help='在过期前多少天发出警告，默认30')
    parser.add_argument('-n', '--max-concurrency', type=int, default=None,
                        help='并发探测上限')
    parser.add_argument('-d', '--deadline', type=float, default=None,
                        help='整体截止时间（秒），超时的目标记为错误')
    output = parser.add_mutually_exclusive_group()
    output.add_argument('-y', '--yaml', action='store_true', help='以YAML格式输出')
    output.add_argument('-j', '--json', action='store_true', help='以JSON格式输出（默认）')
    parser.add_argument('--log-level', default=None, help='日志级别，默认读取 LOG_LEVEL 或 WARNING')
    return parser


def _read_targets(hosts: List[str], stdin: Optional[TextIO]) -> List[str]:
    targets: List[str] = []
    if stdin is not None and not stdin.isatty():
        targets = TargetListManager(stream=stdin).get_targets()
    if not targets:
        targets = TargetListManager(targets=hosts).get_targets()
    return targets


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None,
         stdout: Optional[TextIO] = None) -> int:
    """
    命令行主函数

    Args:
        argv: 命令行参数，默认 sys.argv[1:]
        stdin: 目标输入流，默认 sys.stdin
        stdout: 报告输出流，默认 sys.stdout

    Returns:
        int: 退出码，配置错误时为1
    """
    args = build_parser().parse_args(argv)
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout

    log_level = args.log_level or LoggerService.default_level('WARNING')
    LoggerService(log_level=log_level)

    try:
        config = ConfigValidator().build(
            warn_at_days=args.warn_at_days,
            timeout=args.timeout,
            max_concurrency=args.max_concurrency,
            deadline=args.deadline,
            output_format='yaml' if args.yaml else 'json',
            log_level=log_level,
        )
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.certfile:
        try:
            report = report_from_pem(load_certificate_file(args.certfile), config.warn_at_days)
        except (OSError, CertificateDecodeError) as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
    else:
        report = CertificateMonitor(config).execute(_read_targets(args.hosts, stdin))

    print(render(report, config.output_format), file=stdout)
    return 0


if __name__ == '__main__':
    sys.exit(main())
