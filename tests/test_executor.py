import json
import subprocess

import pytest

from benchtrail import executor as executor_module
from benchtrail.errors import ExecutionFailure
from benchtrail.executor import BenchmarkExecutor, parse_csv_output, parse_json_output

GBENCH_JSON = {
    "context": {
        "date": "2024-03-01T10:00:00+00:00",
        "host_name": "box",
        "executable": "./bench",
        "num_cpus": 8,
        "mhz_per_cpu": 3600,
        "cpu_scaling_enabled": False,
        "caches": [
            {"type": "Data", "level": 1, "size": 32768, "num_sharing": 2},
            {"type": "Unified", "level": 2, "size": 262144, "num_sharing": 2},
        ],
        "load_avg": [0.5, 0.4, 0.3],
        "library_build_type": "release",
    },
    "benchmarks": [
        {
            "name": "BM_Parse/64",
            "run_name": "BM_Parse/64",
            "run_type": "iteration",
            "iterations": 1000000,
            "real_time": 412.5,
            "cpu_time": 410.0,
            "time_unit": "ns",
        },
        {
            "name": "BM_Parse/512",
            "iterations": 0,
            "real_time": 0,
            "cpu_time": 0,
            "time_unit": "ns",
            "error_occurred": True,
            "error_message": "input too large",
        },
        {
            "name": "BM_Lex",
            "iterations": 20,
            "real_time": 1.5,
            "cpu_time": 1.5,
            "time_unit": "ms",
        },
    ],
}

GBENCH_CSV = """\
name,iterations,real_time,cpu_time,time_unit,bytes_per_second,items_per_second,label,error_occurred,error_message
"BM_Parse/64",1000000,412.5,410,ns,,,,,
"BM_Parse/512",0,0,0,ns,,,,true,"input too large"
"BM_Lex",20,1.5,1.5,ms,,,,,
"""


def test_parse_json_output_keeps_context_and_drops_errors():
    output = parse_json_output("./bench", json.dumps(GBENCH_JSON))

    assert [m.name for m in output.benchmarks] == ["BM_Parse/64", "BM_Lex"]
    assert output.benchmarks[0].iterations == 1000000
    assert output.benchmarks[1].time_unit == "ms"
    assert output.context.num_cpus == 8
    assert output.context.caches[1].level == 2


def test_parse_csv_output_skips_preamble():
    text = "Running ./bench\nRun on (8 X 3600 MHz CPU s)\n" + GBENCH_CSV
    output = parse_csv_output("./bench", text)

    assert [m.name for m in output.benchmarks] == ["BM_Parse/64", "BM_Lex"]
    assert output.benchmarks[0].cpu_time == 410.0
    assert output.context is None


def test_parse_json_output_drops_repetition_aggregates():
    repetition = {"iterations": 10, "cpu_time": 1.0, "time_unit": "ns"}
    raw = {
        "benchmarks": [
            {**repetition, "name": "BM_Lex", "run_type": "iteration", "real_time": 1.0},
            {**repetition, "name": "BM_Lex", "run_type": "iteration", "real_time": 3.0},
            {**repetition, "name": "BM_Lex_mean", "run_type": "aggregate", "real_time": 2.0},
            {**repetition, "name": "BM_Lex_stddev", "run_type": "aggregate", "real_time": 1.0},
        ]
    }
    output = parse_json_output("./bench", json.dumps(raw))
    assert [m.real_time for m in output.benchmarks] == [1.0, 3.0]


def test_parse_csv_output_drops_repetition_aggregates():
    text = (
        "name,iterations,real_time,cpu_time,time_unit\n"
        '"BM_Lex",10,1,1,ns\n'
        '"BM_Lex",10,3,3,ns\n'
        '"BM_Lex_mean",10,2,2,ns\n'
        '"BM_Lex_median",10,2,2,ns\n'
        '"BM_Lex_cv",10,0.5,0.5,ns\n'
    )
    output = parse_csv_output("./bench", text)
    assert [m.name for m in output.benchmarks] == ["BM_Lex", "BM_Lex"]


@pytest.mark.parametrize("text", ["", "not json", "[1, 2]", '{"benchmarks": [{"name": "x"}]}'])
def test_parse_json_output_rejects_bad_output(text):
    with pytest.raises(ExecutionFailure):
        parse_json_output("./bench", text)


def test_parse_csv_output_requires_header():
    with pytest.raises(ExecutionFailure):
        parse_csv_output("./bench", "BM_Lex,20,1.5,1.5,ms\n")


def test_unsupported_format_is_rejected():
    with pytest.raises(ValueError):
        BenchmarkExecutor("xml")


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def test_run_passes_format_and_extra_args(monkeypatch):
    calls = []

    def fake_run(command, **kwargs):
        calls.append(command)
        return _completed(stdout=json.dumps(GBENCH_JSON))

    monkeypatch.setattr(executor_module.subprocess, "run", fake_run)
    output = BenchmarkExecutor("json", ["--benchmark_repetitions=3"]).run("./bench")

    assert calls == [["./bench", "--benchmark_format=json", "--benchmark_repetitions=3"]]
    assert len(output.benchmarks) == 2


def test_run_reports_non_zero_exit(monkeypatch):
    monkeypatch.setattr(
        executor_module.subprocess,
        "run",
        lambda command, **kwargs: _completed(returncode=3, stderr="warming up\nsegfault\n"),
    )
    with pytest.raises(ExecutionFailure) as excinfo:
        BenchmarkExecutor().run("./bench")
    assert "exit status 3: segfault" in str(excinfo.value)


def test_run_reports_missing_executable(tmp_path):
    with pytest.raises(ExecutionFailure):
        BenchmarkExecutor().run(str(tmp_path / "does-not-exist"))


def test_run_requires_at_least_one_measurement(monkeypatch):
    monkeypatch.setattr(
        executor_module.subprocess,
        "run",
        lambda command, **kwargs: _completed(stdout=json.dumps({"benchmarks": []})),
    )
    with pytest.raises(ExecutionFailure):
        BenchmarkExecutor().run("./bench")
