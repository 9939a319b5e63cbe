from sublyne_installer.lib import cron, firewall, systemd
from sublyne_installer.lib.hwdetect import normalize_arch, parse_os_release
from sublyne_installer.lib.users import ensure_system_user


def test_existing_user_is_left_alone(fake_run):
    fake_run.respond("id", stdout="uid=998(sublyne)")
    assert ensure_system_user("sublyne", "/opt/sublyne") is False
    assert fake_run.ran("useradd") == []


def test_missing_user_is_created_as_system_account(fake_run):
    fake_run.respond("id", returncode=1)
    assert ensure_system_user("sublyne", "/opt/sublyne") is True
    assert fake_run.ran("useradd") == [["useradd", "-r", "-s", "/bin/bash", "-d", "/opt/sublyne", "sublyne"]]


def test_unit_restarts_always_and_runs_from_venv():
    text = systemd.render_unit(
        systemd.UnitSpec(
            description="Sublyne Tunnel Service",
            user="sublyne",
            working_dir="/opt/sublyne/backend",
            venv_dir="/opt/sublyne/venv",
            exec_start="/opt/sublyne/venv/bin/python main.py",
            restart_sec=5,
        )
    )
    lines = text.splitlines()
    assert "Restart=always" in lines
    assert "RestartSec=5" in lines
    assert "User=sublyne" in lines and "Group=sublyne" in lines
    assert "WorkingDirectory=/opt/sublyne/backend" in lines
    assert "Environment=PATH=/opt/sublyne/venv/bin" in lines
    assert "ExecStart=/opt/sublyne/venv/bin/python main.py" in lines
    assert "After=network.target" in lines
    assert lines[-1] == "WantedBy=multi-user.target"


def test_wait_active_polls_until_active(monkeypatch):
    answers = iter([False, False, True])
    sleeps = []
    monkeypatch.setattr(systemd, "is_active", lambda unit, dry_run=False: next(answers))
    monkeypatch.setattr(systemd.time, "sleep", sleeps.append)

    assert systemd.wait_active("sublyne.service", attempts=5, interval=1.5) is True
    assert sleeps == [1.5, 1.5]


def test_wait_active_gives_up(fake_run, monkeypatch):
    monkeypatch.setattr(systemd.time, "sleep", lambda s: None)
    fake_run.respond("systemctl", "is-active", returncode=3)
    assert systemd.wait_active("sublyne.service", attempts=3, interval=0) is False
    assert len(fake_run.ran("systemctl", "is-active")) == 3


def test_firewall_allows_ssh_and_api_then_drops():
    rules = firewall.build_rules(ssh_port=22, api_port=8000)
    assert rules[0] == ["-F", "INPUT"]
    assert rules[-1] == ["-P", "INPUT", "DROP"]
    flat = [" ".join(r) for r in rules]
    assert "-A INPUT -i lo -j ACCEPT" in flat
    assert "-A INPUT -m conntrack --ctstate ESTABLISHED,RELATED -j ACCEPT" in flat
    assert "-A INPUT -p tcp --dport 22 -j ACCEPT" in flat
    assert "-A INPUT -p tcp --dport 8000 -j ACCEPT" in flat
    # every ACCEPT lands before the DROP policy
    assert all(flat.index(r) < len(flat) - 1 for r in flat if r.endswith("ACCEPT"))


def test_ipv6_rules_admit_icmpv6_before_drop():
    flat = [" ".join(r) for r in firewall.build_rules(ssh_port=22, api_port=8000, ipv6=True)]
    assert flat.index("-A INPUT -p ipv6-icmp -j ACCEPT") < flat.index("-P INPUT DROP")


def test_firewall_applies_both_families_and_persists(fake_run, tmp_path):
    fake_run.respond("iptables-save", stdout="*filter\n-P INPUT DROP\nCOMMIT\n")
    fake_run.respond("ip6tables-save", stdout="*filter\nCOMMIT\n")

    written = firewall.configure_firewall(ssh_port=22, api_port=8000, rules_dir=str(tmp_path))

    assert len(fake_run.ran("iptables", "-A")) == 4
    assert len(fake_run.ran("ip6tables", "-A")) == 5
    assert ["ip6tables", "-A", "INPUT", "-p", "ipv6-icmp", "-j", "ACCEPT"] in fake_run.calls
    assert ["iptables", "-A", "INPUT", "-p", "ipv6-icmp", "-j", "ACCEPT"] not in fake_run.calls
    assert (tmp_path / "rules.v4").read_text().startswith("*filter")
    assert (tmp_path / "rules.v6").exists()
    assert written == [str(tmp_path / "rules.v4"), str(tmp_path / "rules.v6")]


def test_firewall_ipv4_only(fake_run, tmp_path):
    firewall.configure_firewall(ssh_port=2222, api_port=8000, rules_dir=str(tmp_path), ipv6=False)
    assert fake_run.ran("ip6tables") == []
    assert ["iptables", "-A", "INPUT", "-p", "tcp", "--dport", "2222", "-j", "ACCEPT"] in fake_run.calls
    assert not (tmp_path / "rules.v6").exists()


def test_cron_entry_added_once(fake_run):
    fake_run.respond("crontab", "-l", returncode=1, stderr="no crontab for sublyne")
    assert cron.install_reboot_job("sublyne", "/opt/sublyne/venv/bin/python restore.py") is True
    assert fake_run.inputs[-1] == "@reboot /opt/sublyne/venv/bin/python restore.py\n"

    fake_run.respond("crontab", "-l", stdout="MAILTO=\"\"\n@reboot /opt/sublyne/venv/bin/python restore.py\n")
    assert cron.install_reboot_job("sublyne", "/opt/sublyne/venv/bin/python restore.py") is False
    assert len(fake_run.ran("crontab", "-u")) == 1


def test_cron_keeps_existing_entries(fake_run):
    fake_run.respond("crontab", "-l", stdout="0 * * * * backup\n")
    cron.install_reboot_job("sublyne", "restore")
    assert fake_run.inputs[-1] == "0 * * * * backup\n@reboot restore\n"


def test_arch_names_match_gost_assets():
    assert normalize_arch("x86_64") == "amd64"
    assert normalize_arch("aarch64") == "armv8"
    assert normalize_arch("armv7l") == "armv7"
    assert normalize_arch("mips") == "mips"


def test_parse_os_release():
    osr = parse_os_release('ID=ubuntu\nID_LIKE=debian\nPRETTY_NAME="Ubuntu 24.04 LTS"\n# comment\n')
    assert osr == {"ID": "ubuntu", "ID_LIKE": "debian", "PRETTY_NAME": "Ubuntu 24.04 LTS"}
