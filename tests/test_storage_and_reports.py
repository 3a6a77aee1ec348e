import os
from datetime import datetime, timezone
from unittest.mock import Mock, patch

from botzin.app.services.analytics_service import AnalyticsService
from botzin.app.services.scheduler_service import (
    SchedulerService, backup_database, monitor_resources, send_daily_report, send_maintenance_notice
)
from botzin.infra.clients import sqlite_repo
from botzin.shared.config import DEFAULT_BOT_CONFIG

GROUP = "120363000000000000@g.us"


def today():
    return datetime.now(timezone.utc).date().isoformat()


class TestSQLiteRepo:
    def test_group_messages_capped_per_day(self, repo, monkeypatch):
        monkeypatch.setattr(sqlite_repo, 'GROUP_MESSAGES_PER_DAY', 2)
        assert repo.save_group_message(GROUP, {'body': 'um'}) is True
        assert repo.save_group_message(GROUP, {'body': 'dois'}) is True
        assert repo.save_group_message(GROUP, {'body': 'três'}) is False
        assert repo.save_group_message("outro@g.us", {'body': 'um'}) is True
        assert repo.get_group_messages(GROUP, today()) == ['um', 'dois']

    def test_knowledge_lines_in_order(self, repo):
        repo.save_knowledge("u1", "a: 1")
        repo.save_knowledge("u1", "b: 2")
        assert repo.get_knowledge("u1") == "a: 1\nb: 2"
        assert repo.get_knowledge("u2") == ""

    def test_pending_leads_cutoff(self, repo):
        repo.save_lead("u1", "velho", date="2025-03-10T00:00:00+00:00")
        repo.save_lead("u1", "novo", date="2025-03-10T05:00:00+00:00")
        pending = repo.get_pending_leads("2025-03-10T01:00:00+00:00")
        assert [lead.message for lead in pending] == ["velho"]
        repo.mark_lead_followed_up(pending[0].id)
        assert repo.get_pending_leads("2025-03-10T01:00:00+00:00") == []

    def test_user_style_upsert(self, repo):
        repo.save_user_style("u1", "formal")
        repo.save_user_style("u1", "informal")
        assert repo.get_user_style("u1") == "informal"
        assert repo.get_user_style("u2") is None

    def test_queries_without_schema_fail_soft(self, tmp_path):
        broken = sqlite_repo.SQLiteRepo(str(tmp_path / "empty.db"))
        assert broken.get_group_messages(GROUP, today()) is None
        assert broken.get_pending_leads("2025-01-01") is None
        assert broken.save_lead("u1", "x") is False


class TestAnalytics:
    def test_daily_summary(self, repo, clock):
        clock.now = datetime.now(timezone.utc).timestamp()
        repo.save_group_message(GROUP, {'body': 'primeira'})
        repo.save_group_message(GROUP, {'body': 'segunda'})
        summary = AnalyticsService(repo, clock=clock).daily_summary(GROUP)
        assert summary == f"Resumo do dia {today()}:\nprimeira\nsegunda..."

    def test_empty_daily_summary(self, repo, clock):
        assert AnalyticsService(repo, clock=clock).daily_summary(GROUP) == 'Nenhuma mensagem hoje ainda.'

    def test_weekly_summary_groups_by_chat(self, repo, clock):
        clock.now = datetime.now(timezone.utc).timestamp()
        repo.save_group_message(GROUP, {'body': 'oi'})
        repo.save_group_message("outro@g.us", {'body': 'tchau'})
        summary = AnalyticsService(repo, clock=clock).weekly_summary()
        assert summary.startswith('Resumo Semanal:')
        assert f"Grupo {GROUP}:\n{today()}: oi..." in summary
        assert "tchau" in summary

    def test_uptime_and_stats(self, repo, clock):
        analytics = AnalyticsService(repo, clock=clock)
        clock.advance(125)
        repo.log_usage("u1", "hora")
        repo.log_usage("u1", "ajuda")
        repo.log_usage("u2", "hora")
        stats = analytics.stats()
        assert "Uptime: 2 minutos" in stats
        assert "Total de comandos: 3" in stats
        assert "u1: 2 comandos" in stats


class TestBackup:
    def test_daily_and_manual_names(self, repo, tmp_path):
        backup_dir = str(tmp_path / "backup")
        daily = backup_database(repo.db_path, backup_dir)
        manual = backup_database(repo.db_path, backup_dir, manual=True)
        assert os.path.basename(daily) == f"test_{today()}.db"
        assert "_manual_" in os.path.basename(manual)
        assert os.path.exists(daily) and os.path.exists(manual)


class TestJobs:
    async def test_resource_alert_goes_to_admin(self, gateway):
        config = dict(DEFAULT_BOT_CONFIG, admin_number="admin")
        with patch('botzin.app.services.scheduler_service.resource_usage', return_value=(95.0, 40.0)):
            await monitor_resources(gateway, config)
        number, alert = gateway.send_text.call_args[0]
        assert number == "admin"
        assert "CPU: 95.00% (limite: 80%)" in alert

    async def test_no_alert_under_thresholds(self, gateway):
        with patch('botzin.app.services.scheduler_service.resource_usage', return_value=(10.0, 10.0)):
            await monitor_resources(gateway, dict(DEFAULT_BOT_CONFIG, admin_number="admin"))
        gateway.send_text.assert_not_called()

    async def test_daily_report_per_group(self, gateway):
        analytics = Mock()
        analytics.daily_summary.return_value = "resumo"
        config = dict(DEFAULT_BOT_CONFIG, monitored_groups=[GROUP, "outro@g.us"])
        await send_daily_report(gateway, analytics, config, "report")
        assert gateway.send_text.call_count == 2
        assert gateway.send_text.call_args_list[0][0][1].endswith(f"pra {GROUP}:\nresumo")

    async def test_maintenance_notice(self, gateway):
        config = dict(DEFAULT_BOT_CONFIG, monitored_groups=[GROUP])
        await send_maintenance_notice(gateway, config)
        gateway.send_text.assert_called_once_with(GROUP, config['maintenance_message'])


class TestSchedulerRegistration:
    def make(self, gateway, report_number, **config):
        return SchedulerService(gateway, Mock(), Mock(), Mock(), dict(DEFAULT_BOT_CONFIG, **config),
                                report_number=report_number)

    def test_all_jobs(self, gateway):
        service = self.make(gateway, "report", maintenance_time="0 3 * * mon")
        service.register_jobs()
        assert {job.id for job in service.scheduler.get_jobs()} == {
            'resource_monitor', 'db_backup', 'lead_follow_up', 'watchdog',
            'daily_report', 'weekly_report', 'maintenance_notice',
        }

    def test_reports_need_recipient(self, gateway):
        service = self.make(gateway, None)
        service.register_jobs()
        ids = {job.id for job in service.scheduler.get_jobs()}
        assert 'daily_report' not in ids
        assert 'maintenance_notice' not in ids

    def test_invalid_cron_is_skipped(self, gateway):
        service = self.make(gateway, "report", report_time="quando der")
        service.register_jobs()
        assert 'daily_report' not in {job.id for job in service.scheduler.get_jobs()}
