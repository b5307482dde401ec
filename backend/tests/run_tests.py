#!/usr/bin/env python3
"""
Gallery 测试运行脚本

使用方法：
    python tests/run_tests.py              # 运行所有测试
    python tests/run_tests.py --cache      # 只运行 image_cache 包的测试（缓存、下载）
    python tests/run_tests.py --gallery    # 只运行 gallery 包的测试（分页、会话、路由）
    python tests/run_tests.py --fast       # 跳过线程池并发压测（threaded 标记）
    python tests/run_tests.py --report     # 生成 HTML 报告
    python tests/run_tests.py -k eviction  # 其余参数原样传给 pytest

快速开始：
    pip install -e ".[test]"
    cd backend
    python tests/run_tests.py --fast
"""

import subprocess
import sys
import os
from pathlib import Path

backend_dir = Path(__file__).parent.parent

SUITES = {
    "--cache": ["tests/test_bounded_cache.py", "tests/test_fetcher.py"],
    "--gallery": [
        "tests/test_pagination.py",
        "tests/test_collection_client.py",
        "tests/test_session.py",
        "tests/test_routes.py",
    ],
}


def build_command(args):
    """把脚本参数翻译成 pytest 命令行"""
    args = list(args)
    targets = []
    for flag, files in SUITES.items():
        if flag in args:
            args.remove(flag)
            targets.extend(files)

    cmd = [sys.executable, "-m", "pytest"] + (targets or ["tests/"])

    if not any(arg.startswith("-v") or arg == "-q" for arg in args):
        cmd.append("-v")

    if "--fast" in args:
        args.remove("--fast")
        cmd.extend(["-m", "not threaded"])

    if "--report" in args:
        args.remove("--report")
        cmd.extend(["--html=tests/report.html", "--self-contained-html"])

    return cmd + args


def main():
    """运行测试"""
    # 切换到 backend 目录
    os.chdir(backend_dir)
    cmd = build_command(sys.argv[1:])

    print(f"\n{'='*60}")
    print("Gallery 缓存与分页测试")
    print(f"{'='*60}")
    print(f"运行命令: {' '.join(cmd)}")
    print(f"{'='*60}\n")

    result = subprocess.run(cmd)
    sys.exit(result.returncode)


if __name__ == "__main__":
    main()
