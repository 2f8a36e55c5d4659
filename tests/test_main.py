from forestmap import __main__ as quickstart


def test_quickstart_mentions_both_containers(capsys):
    quickstart.main()

    out = capsys.readouterr().out
    assert "BalancedMap" in out
    assert "PrefixMap" in out
    assert "FORESTMAP_VALIDATE" in out
