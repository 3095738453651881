import run_kmeans


def test_cli_prints_report(labelled_file, capsys):
    code = run_kmeans.main(
        [str(labelled_file), "--k", "2", "--true-clusters", "--init", "maximin", "--validator", "rand", "--seed", "1"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Run 1" in out
    assert "RS (2) = 1.0000" in out
    assert "Using validator:  Rand Statistic" in out


def test_cli_normalizes_and_profiles(labelled_file, capsys):
    code = run_kmeans.main(
        [str(labelled_file), "--k", "2", "--true-clusters", "--normalize", "min-max", "--runs", "2", "--profile"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Normalized with:  Min-Max" in out
    assert "run 2 timing breakdown (s):" in out


def test_cli_load_error_exit_code(tmp_path, capsys):
    bad = tmp_path / "bad.txt"
    bad.write_text("2 2\n0 0\n", encoding="utf-8")
    assert run_kmeans.main([str(bad), "--k", "2"]) == run_kmeans.EXIT_LOAD_ERROR
    assert "Expected 2 points" in capsys.readouterr().err


def test_cli_out_of_range_label_is_a_load_error(tmp_path, capsys):
    path = tmp_path / "labels.txt"
    path.write_text("4 2 2\n0 0\n1 0\n9 1\n10 5\n", encoding="utf-8")
    code = run_kmeans.main([str(path), "--k", "2", "--true-clusters", "--validator", "rand"])
    assert code == run_kmeans.EXIT_LOAD_ERROR
    assert "line 5" in capsys.readouterr().err


def test_cli_config_error_exit_code(labelled_file, capsys):
    assert run_kmeans.main([str(labelled_file), "--k", "1"]) == run_kmeans.EXIT_CONFIG_ERROR
    assert run_kmeans.main([str(labelled_file), "--k", "2", "--validator", "dunn"]) == run_kmeans.EXIT_CONFIG_ERROR
    assert "invalid configuration" in capsys.readouterr().err


def test_cli_external_validator_needs_truth_flag(tmp_path, capsys):
    path = tmp_path / "plain.txt"
    path.write_text("4 1\n0\n1\n9\n10\n", encoding="utf-8")
    assert run_kmeans.main([str(path), "--k", "2", "--validator", "fm"]) == run_kmeans.EXIT_CONFIG_ERROR
    assert "needs --true-clusters" in capsys.readouterr().err


def test_cli_degenerate_data_exit_code(tmp_path, capsys):
    path = tmp_path / "pair.txt"
    path.write_text("2 1\n0\n5\n", encoding="utf-8")
    code = run_kmeans.main([str(path), "--k", "2", "--init", "maximin"])
    assert code == run_kmeans.EXIT_CLUSTERING_ERROR
    assert "clustering aborted" in capsys.readouterr().err
