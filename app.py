# app.py
"""
Branch Operations Dashboard - Main Entry Point

Version: 1.0.0
"""

import streamlit as st
from branch_ops.auth import AuthManager
from branch_ops.config import config
from branch_ops.db import check_backend_connection
from branch_ops.constants import ROLE_ADMIN, ROLE_EDITOR
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Gestión de Sucursal"
APP_ICON = "🏦"
APP_VERSION = "1.0.0"
BRANCH_NAME = config.get_app_setting("BRANCH_NAME", "")

st.set_page_config(
    page_title=f"{APP_NAME} - {BRANCH_NAME}",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #111827;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .welcome-box {
        background: linear-gradient(135deg, #111827 0%, #374151 100%);
        color: white;
        padding: 2rem;
        border-radius: 0.75rem;
        margin-bottom: 2rem;
    }

    .welcome-title {
        font-size: 1.75rem;
        font-weight: 600;
        margin-bottom: 0.5rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.25rem;
        border-radius: 0.5rem;
        border-left: 4px solid #111827;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

auth = AuthManager()

PAGES = [
    ("📊 Dashboard", "Indicadores contra presupuesto, compromiso ajustado del día y ranking de asesores."),
    ("🤝 Compromisos", "Compromisos semanales de la sucursal y exportación a Excel."),
    ("📝 Captura", "Captura diaria o semanal de resultados por asesor o sucursal."),
    ("💰 Presupuestos", "Metas diarias y semanales por indicador, propagación por trimestre o año."),
    ("📅 Horarios", "Cronograma semanal, horario protegido Fénix y cumplimiento."),
    ("👥 RRHH", "Vacaciones, permisos, descansos, cumpleaños y aniversarios."),
]

# ==================== HELPER FUNCTIONS ====================

@st.cache_data(ttl=config.get_app_setting("CACHE_TTL_SECONDS", 300))
def backend_status():
    return check_backend_connection()


def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown(f'<p class="sub-header">{BRANCH_NAME}</p>', unsafe_allow_html=True)

    if not config.is_backend_configured():
        st.error("⚠️ SUPABASE_URL / SUPABASE_ANON_KEY no configurados")
        return

    backend_ok, backend_error = backend_status()
    if not backend_ok:
        st.error(f"⚠️ {backend_error}")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Iniciar sesión")

            email = st.text_input("Correo", placeholder="usuario@empresa.com", key="login_email")
            password = st.text_input("Contraseña", type="password", key="login_password")
            remember = st.checkbox("Mantener sesión en este equipo", value=True)

            submit = st.form_submit_button("🔑 Entrar", type="primary", use_container_width=True)

            if submit:
                if not email or not password:
                    st.warning("Ingrese correo y contraseña")
                else:
                    with st.spinner("Autenticando..."):
                        success, result = auth.authenticate(email, password)

                    if success:
                        with st.spinner("Cargando datos de la sucursal..."):
                            auth.login(result, persist=remember)
                        st.success("✅ Bienvenido")
                        st.rerun()
                    else:
                        st.error(result.get("error", "No se pudo iniciar sesión"))


def show_main_app():
    """Display the main application after login"""
    store = auth.get_store()

    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")

        role = st.session_state.get('user_role', '')
        if role == ROLE_ADMIN:
            st.success("🔓 Administrador")
        elif role == ROLE_EDITOR:
            st.info("✏️ Editor")
        else:
            st.warning("👁️ Solo lectura")

        st.markdown("---")

        if st.button("🔄 Recargar datos", use_container_width=True):
            store.reload()
            st.rerun()

        if st.button("🚪 Cerrar sesión", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"""
    <div class="welcome-box">
        <div class="welcome-title">Hola, {auth.get_user_display_name()} 👋</div>
        <div>Seleccione una sección en el menú lateral.</div>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### Secciones")
    for title, description in PAGES:
        st.markdown(f"""
        <div class="info-card">
            <strong>{title}</strong><br>
            <span style="color: #666;">{description}</span>
        </div>
        """, unsafe_allow_html=True)

    if auth.is_admin():
        st.markdown("---")
        with st.expander("🔧 Estado del sistema (Admin)"):
            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Asesores", len(store.advisors))
            with col2:
                st.metric("Registros", len(store.records))
            with col3:
                loaded = store.loaded_at.strftime('%H:%M:%S') if store.loaded_at else "-"
                st.metric("Última carga", loaded)

            if store.audit_logs:
                st.caption("Últimas acciones")
                st.dataframe(
                    [
                        {'Fecha': e.timestamp, 'Usuario': e.username, 'Acción': e.action, 'Detalle': e.details}
                        for e in store.audit_logs[:20]
                    ],
                    hide_index=True,
                    use_container_width=True,
                )

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    auth.tokens.flush()

    if not auth.check_session() and not auth.restore_session():
        show_login_page()
    else:
        show_main_app()


if __name__ == "__main__":
    main()
