"""
Pytest fixtures for the CMMS backend tests.
"""
import os
import sys
import pytest
import tempfile
from datetime import date, datetime, timedelta, timezone

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set test environment variables before importing app
os.environ['FLASK_DEBUG'] = 'false'


@pytest.fixture
def config_file(monkeypatch):
    """Point the configuration manager at a throwaway JSON file."""
    fd, path = tempfile.mkstemp(suffix='.json')
    os.close(fd)
    os.unlink(path)
    monkeypatch.setenv('CMMS_CONFIG_FILE', path)
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def app(config_file):
    """Create and configure a test application instance."""
    # Create a temporary database
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    from cmms.main import app as flask_app
    from cmms.database import init_db

    flask_app.config.update({
        'TESTING': True,
        'DATABASE_PATH': db_path,
    })

    init_db(db_path)

    yield flask_app

    # Cleanup
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """Create a test client for the application."""
    return app.test_client()


def _ts(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat()


@pytest.fixture
def db_with_data(app):
    """
    Set up database with sample assets, breakdowns, work orders and contracts.

    Only one completed, unplanned breakdown (BD-001 on A-001) falls inside a
    30-day window: 10h downtime, 6h repair.
    """
    from cmms.database import get_db_connection

    # Stored timestamps are UTC without offset
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    today = date.today()
    base = now - timedelta(days=5)
    old = now - timedelta(days=60)

    with get_db_connection(app.config['DATABASE_PATH']) as conn:
        conn.executemany("""
            INSERT INTO assets (id, name, category, location, status)
            VALUES (?, ?, ?, ?, ?)
        """, [
            ('A-001', 'Pompe P-101', 'Pompe', 'Clinique du Parc', 'Opérationnel'),
            ('A-002', 'Autoclave AC-20', 'Stérilisation', 'Hôpital Privé Nord', 'Opérationnel'),
            ('A-003', 'Ascenseur B', 'Ascenseur', 'Clinique Sainte-Marie', 'Maintenance'),
        ])

        conn.executemany("""
            INSERT INTO breakdown_events
                (id, asset_id, breakdown_start, breakdown_end, repair_start, repair_end, is_planned_stop)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, [
            ('BD-001', 'A-001', _ts(base), _ts(base + timedelta(hours=10)),
             _ts(base + timedelta(hours=2)), _ts(base + timedelta(hours=8)), 0),
            # Planned stop, excluded from reliability statistics
            ('BD-002', 'A-001', _ts(base + timedelta(days=1)), _ts(base + timedelta(days=1, hours=4)),
             _ts(base + timedelta(days=1)), _ts(base + timedelta(days=1, hours=4)), 1),
            # Repair still in progress
            ('BD-003', 'A-002', _ts(base), _ts(base + timedelta(hours=3)),
             _ts(base + timedelta(hours=1)), None, 0),
            # Outside a 30-day window
            ('BD-004', 'A-001', _ts(old), _ts(old + timedelta(hours=5)),
             _ts(old + timedelta(hours=1)), _ts(old + timedelta(hours=4)), 0),
        ])

        conn.executemany("""
            INSERT INTO work_orders
                (id, asset_id, title, status, maintenance_type, priority, parts_replaced, invoice_status, due_date)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            ('WO-1', 'A-001', 'Remplacement garniture', 'Completed', 'Corrective', 'High', 0, None,
             (today - timedelta(days=10)).isoformat()),
            ('WO-2', 'A-001', 'Remplacement roulement', 'Completed', 'Corrective', 'High', 1, None,
             (today - timedelta(days=8)).isoformat()),
            ('WO-3', 'A-002', 'Réparation joint de porte', 'Completed', 'Palliative', 'Medium', 0, 'Deposited',
             (today - timedelta(days=6)).isoformat()),
            ('WO-4', 'A-003', 'Inspection trimestrielle', 'Open', 'Preventive', 'Medium', 0, None,
             (today - timedelta(days=1)).isoformat()),
            ('WO-5', 'A-003', 'Graissage câbles', 'InProgress', 'Preventive', 'Low', 0, None,
             (today + timedelta(days=2)).isoformat()),
            ('WO-6', 'A-002', 'Contrôle sécurité', 'Cancelled', 'Corrective', 'Low', 0, None,
             (today - timedelta(days=5)).isoformat()),
        ])

        conn.executemany("""
            INSERT INTO contracts (id, name, provider, clinic, status, start_date, end_date, annual_cost)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            ('CTR-001', 'Maintenance Pompes', 'HydroServ', 'Clinique du Parc', 'Active',
             (today - timedelta(days=100)).isoformat(), (today + timedelta(days=200)).isoformat(), 12000.0),
            ('CTR-002', 'Contrat Ascenseurs', 'Otis SAS', 'Clinique Sainte-Marie', 'ExpiringSoon',
             (today - timedelta(days=355)).isoformat(), (today + timedelta(days=10)).isoformat(), 4800.0),
            ('CTR-003', 'Groupes Électrogènes', 'Eneria Cat', 'Hôpital Privé Nord', 'Expired',
             (today - timedelta(days=400)).isoformat(), (today - timedelta(days=30)).isoformat(), 3200.0),
        ])

        conn.executemany("""
            INSERT INTO inventory_items
                (id, kind, name, reference, current_stock, min_stock, unit, location, supplier, purchase_cost)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            ('P-001', 'part', 'Garniture mécanique', 'GM-45', 2, 5, 'pièce', 'Magasin A', 'HydroServ', 85.0),
            ('P-002', 'part', 'Roulement 6205', 'RL-6205', 10, 3, 'pièce', 'Magasin A', 'SKF', 12.5),
            ('R-001', 'reagent', 'Glucose oxydase', 'GOX-100', 1, 1, 'flacon', 'Labo', 'BioLab', 42.0),
            ('R-002', 'reagent', 'Tampon phosphate', 'TP-500', 20, 5, 'litre', 'Labo', 'BioLab', 9.9),
        ])

    return app
