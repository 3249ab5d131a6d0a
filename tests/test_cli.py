import pytest

from connect4engine.interfaces.cli import SimpleCLI, main


def feed(monkeypatch, *answers):
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


class TestAnalyze:
    def test_move_list(self, capsys):
        main(['analyze', '--moves', '3342', '--depth', '2'])
        out = capsys.readouterr().out
        assert "Pieces: X=2 O=2, X to move" in out
        assert "Engine choices:" in out
        for tier in ("easy", "moderate", "hard"):
            assert tier in out

    def test_position_with_win(self, capsys):
        cells = ["0"] * 35 + ["1", "1", "1", "0", "2", "2", "2"]
        main(['analyze', '--position', ",".join(cells), '--depth', '2'])
        out = capsys.readouterr().out
        assert "Immediate win: 3" in out

    def test_illegal_moves(self, capsys):
        main(['analyze', '--moves', '0000000'])
        assert "Error parsing position" in capsys.readouterr().out

    def test_bad_position(self, capsys):
        main(['analyze', '--position', '1,2,3'])
        assert "Error parsing position" in capsys.readouterr().out


class TestBenchmark:
    def test_reports_every_tier(self, capsys):
        main(['benchmark', '--iterations', '1', '--depth', '2'])
        out = capsys.readouterr().out
        assert "1 positions per tier" in out
        assert out.count("ms per move") == 3

    def test_positions_cycle(self):
        cli = SimpleCLI()
        boards = cli.benchmark_positions(10)
        assert len(boards) == 10
        assert boards[0].moves_made == boards[8].moves_made == []


class TestPlay:
    def test_hint_then_quit(self, monkeypatch, capsys):
        feed(monkeypatch, "h", "q")
        main(['play', '--difficulty', 'easy'])
        out = capsys.readouterr().out
        assert "Hint: column 3" in out
        assert "Quitting game." in out

    def test_move_and_undo(self, monkeypatch, capsys):
        feed(monkeypatch, "3", "u", "9", "x", "q")
        cli = SimpleCLI()
        cli.run(['play', '--difficulty', 'easy'])
        out = capsys.readouterr().out
        assert "Engine plays column" in out
        assert "Move undone." in out
        assert "Column must be between 0 and 6." in out
        assert "Invalid input." in out
        assert cli.game.board.moves_made == []

    def test_engine_first(self, monkeypatch, capsys):
        feed(monkeypatch, "q")
        cli = SimpleCLI()
        cli.run(['play', '--difficulty', 'easy', '--engine-first'])
        assert cli.game.board.moves_made == [3]

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit):
            main([])
