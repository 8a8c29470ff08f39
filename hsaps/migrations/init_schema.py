"""Database schema initialization.

Contains all CREATE TABLE and CREATE INDEX statements and the seed data for
the HSAPS database (settings row, default role permissions, the
payment_confirmed email template and an optional bootstrap Admin).

Called by database.init_db() at app startup.
"""
import os

from werkzeug.security import generate_password_hash

from core.roles.permissions import DEFAULT_ROLE_PERMISSIONS, ROLE_ADMIN

DEFAULT_EMAIL_TEMPLATES = [
    (
        'payment_confirmed', 'submissions',
        'Gửi tự động khi đăng ký chuyển sang Đã thanh toán. Biến: {{ho_ten}}, {{id_tham_du}}',
        'Xác nhận thanh toán đăng ký tham dự Hội nghị HSAPS 2025',
        'Kính gửi {{ho_ten}},\n\n'
        'Ban Tổ chức xác nhận đã nhận được khoản thanh toán cho đăng ký của Quý đại biểu.\n'
        'Mã tham dự của Quý đại biểu: {{id_tham_du}}\n\n'
        'Vui lòng xuất trình mã này tại quầy đón tiếp để nhận thẻ đại biểu.\n\n'
        'Trân trọng,\nBan Tổ chức Hội nghị HSAPS 2025',
    ),
    (
        'submission_reminder', 'submissions',
        'Nhắc đại biểu hoàn tất thanh toán. Biến: {{ho_ten}}, {{id_tham_du}}, {{email}}, {{loai_dai_bieu}}',
        'Nhắc nhở hoàn tất thanh toán - Hội nghị HSAPS 2025',
        'Kính gửi {{ho_ten}},\n\n'
        'Đăng ký {{id_tham_du}} ({{loai_dai_bieu}}) của Quý đại biểu đang chờ thanh toán.\n\n'
        'Trân trọng,\nBan Tổ chức Hội nghị HSAPS 2025',
    ),
    (
        'speaker_invitation', 'speakers',
        'Thư mời báo cáo viên. Biến: {{ho_ten}}, {{hoc_ham}}, {{email}}, {{ten_bai_bao_cao}}',
        'Thư mời báo cáo tại Hội nghị HSAPS 2025',
        'Kính gửi {{hoc_ham}} {{ho_ten}},\n\n'
        'Ban Tổ chức trân trọng mời Quý báo cáo viên trình bày bài báo cáo "{{ten_bai_bao_cao}}".\n\n'
        'Trân trọng,\nBan Tổ chức Hội nghị HSAPS 2025',
    ),
]


def create_schema(conn, cursor):
    """Create all database tables, indexes, and seed data.

    Args:
        conn: Database connection (for commit/rollback)
        cursor: Database cursor from get_cursor(conn)
    """
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS profiles (
            id SERIAL PRIMARY KEY,
            full_name TEXT,
            email TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL DEFAULT 'Thành viên BTC',
            avatar TEXT,
            password_hash TEXT NOT NULL,
            last_login TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS role_permissions (
            id SERIAL PRIMARY KEY,
            role TEXT NOT NULL,
            permission TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(role, permission)
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS submissions (
            id SERIAL PRIMARY KEY,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT,
            dob DATE,
            workplace TEXT,
            address TEXT,
            attendee_type TEXT,
            cme BOOLEAN DEFAULT FALSE,
            gala_dinner BOOLEAN DEFAULT FALSE,
            payment_amount NUMERIC(15,2),
            payment_image_url TEXT,
            status TEXT NOT NULL DEFAULT 'Chờ duyệt',
            registration_time TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            attendance_id TEXT UNIQUE,
            badge_url TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_submissions_status ON submissions(status)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_submissions_registration ON submissions(registration_time DESC)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS submission_side_effects (
            id SERIAL PRIMARY KEY,
            submission_id INTEGER NOT NULL REFERENCES submissions(id) ON DELETE CASCADE,
            effect TEXT NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'pending',
            attempts INTEGER NOT NULL DEFAULT 0,
            last_error TEXT,
            actor_id INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_side_effects_submission
        ON submission_side_effects(submission_id)
    ''')
    cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_side_effects_retry
        ON submission_side_effects(status, created_at) WHERE status IN ('failed', 'pending')
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS speakers (
            id SERIAL PRIMARY KEY,
            full_name TEXT NOT NULL,
            academic_rank TEXT,
            email TEXT NOT NULL UNIQUE,
            phone TEXT,
            workplace TEXT,
            report_title_vn TEXT,
            report_title_en TEXT,
            status TEXT NOT NULL DEFAULT 'Chờ duyệt',
            speaker_type TEXT DEFAULT 'Báo cáo viên',
            avatar_url TEXT,
            passport_url TEXT,
            abstract_file_url TEXT,
            report_file_url TEXT,
            cv_url TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS sponsors (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            sponsorship_package TEXT DEFAULT 'Đồng',
            amount NUMERIC(15,2) DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'Chờ duyệt',
            contact_person TEXT,
            email TEXT,
            phone TEXT,
            logo_url TEXT,
            contract_url TEXT,
            contract_status TEXT,
            notes TEXT,
            location TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS tasks (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            status TEXT NOT NULL DEFAULT 'Chờ duyệt',
            due_date DATE,
            assignee_id INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS finance_transactions (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('Thu', 'Chi')),
            amount NUMERIC(15,2) NOT NULL DEFAULT 0,
            category TEXT,
            transaction_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            handler_id INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            account TEXT,
            payment_method TEXT,
            receipt_url TEXT,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_finance_date ON finance_transactions(transaction_date DESC)
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS event_documents (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            type TEXT NOT NULL DEFAULT 'Khác',
            file_url TEXT NOT NULL,
            thumbnail_url TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS program_items (
            id SERIAL PRIMARY KEY,
            date DATE NOT NULL,
            time TEXT,
            session TEXT,
            category TEXT,
            report_title_vn TEXT,
            report_title_en TEXT,
            speaker_id INTEGER REFERENCES speakers(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS notifications (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            message TEXT NOT NULL,
            link TEXT,
            read BOOLEAN DEFAULT FALSE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_notifications_user
        ON notifications(user_id, created_at DESC)
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS email_templates (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            module TEXT NOT NULL CHECK (module IN ('submissions', 'speakers')),
            description TEXT,
            subject TEXT NOT NULL,
            body TEXT NOT NULL
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS settings (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            sender_name TEXT,
            sender_email TEXT,
            oa_id TEXT,
            oa_secret_key TEXT,
            access_token TEXT,
            abitstore_api_url TEXT,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # Seed data
    cursor.execute('INSERT INTO settings (id) VALUES (1) ON CONFLICT (id) DO NOTHING')

    for role, permissions in DEFAULT_ROLE_PERMISSIONS.items():
        for permission in permissions:
            cursor.execute('''
                INSERT INTO role_permissions (role, permission)
                VALUES (%s, %s)
                ON CONFLICT (role, permission) DO NOTHING
            ''', (role, permission))

    for name, module, description, subject, body in DEFAULT_EMAIL_TEMPLATES:
        cursor.execute('''
            INSERT INTO email_templates (name, module, description, subject, body)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (name) DO NOTHING
        ''', (name, module, description, subject, body))

    _seed_admin(cursor)
    conn.commit()


def _seed_admin(cursor):
    """Bootstrap Admin from ADMIN_EMAIL / ADMIN_PASSWORD when no profile exists yet."""
    email = os.environ.get('ADMIN_EMAIL')
    password = os.environ.get('ADMIN_PASSWORD')
    if not email or not password:
        return
    cursor.execute('SELECT COUNT(*) AS cnt FROM profiles')
    if cursor.fetchone()['cnt'] > 0:
        return
    cursor.execute('''
        INSERT INTO profiles (full_name, email, role, avatar, password_hash)
        VALUES (%s, %s, %s, %s, %s)
    ''', ('Quản trị viên', email, ROLE_ADMIN, f'https://i.pravatar.cc/150?u={email}',
          generate_password_hash(password)))
