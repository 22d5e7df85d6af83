# ui_main_window.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List

from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QFileDialog,
    QMessageBox,
    QLabel,
    QCheckBox,
    QStatusBar,
    QSpinBox,
    QFrame,
    QSizePolicy,
    QTabWidget,
    QTableWidget,
    QTableWidgetItem,
    QHeaderView,
)
from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Qt, Signal

from matplotlib.backends.backend_qtagg import (
    FigureCanvasQTAgg as FigureCanvas,
    NavigationToolbar2QT,
)
from matplotlib.figure import Figure

from aggregation import (
    count_switch_ons,
    format_consumption,
    format_on_time,
    last_registers,
)
from charts import device_chart_spec, draw_bar_chart, hourly_chart_spec
from dashboard import (
    DashboardController,
    DashboardState,
    Failed,
    FetchFailed,
    Loading,
    Ready,
    status_text,
)
from data_acquisition import SENSOR_ENDPOINTS, ApiDataSource
from export import export_to_excel
from logging_setup import get_logger
from settings import SettingsManager

logger = get_logger(__name__)

SENSOR_TITLES = {
    "soil-moisture-data": "Humedad del suelo",
    "light-sensor-data": "Sensor de luz",
    "temperature-data": "Temperatura",
}


class _WorkerSignals(QObject):
    # (ok, resultado o excepción)
    finished = Signal(bool, object)


class _Worker(QRunnable):
    """Ejecuta una función bloqueante fuera del hilo de la UI."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        super().__init__()
        self.fn = fn
        self.signals = _WorkerSignals()

    def run(self) -> None:
        try:
            result = self.fn()
        except Exception as e:
            logger.exception("Error en tarea de fondo")
            self.signals.finished.emit(False, e)
            return
        self.signals.finished.emit(True, result)


class MainWindow(QMainWindow):
    def __init__(
        self,
        source: ApiDataSource,
        settings: SettingsManager,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.source = source
        self.settings = settings
        self.pool = QThreadPool.globalInstance()

        self.setWindowTitle("Dashboard de Iluminación Inteligente")

        self.controller = DashboardController(source=source)
        self.controller.subscribe(self._render_state)

        # Timer de refresco automático (desactivado con intervalo 0)
        self.timer = QTimer(self)
        self.timer.timeout.connect(self._on_timer)

        # ===================== LAYOUT PRINCIPAL =====================
        central = QWidget(self)
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(8)

        # --------- BARRA SUPERIOR: ACCIONES RÁPIDAS ----------
        top_layout = QHBoxLayout()
        top_layout.setSpacing(10)

        self.btn_refresh = QPushButton("🔄 Actualizar")
        self.btn_export = QPushButton("📤 Exportar a Excel")
        self.dark_mode_check = QCheckBox("🌙 Modo oscuro")

        self.btn_export.setEnabled(False)

        self.btn_refresh.clicked.connect(self.refresh)
        self.btn_export.clicked.connect(self.export_excel)
        self.dark_mode_check.stateChanged.connect(self.toggle_dark_mode)

        for btn in (self.btn_refresh, self.btn_export):
            btn.setCursor(Qt.PointingHandCursor)
            btn.setMinimumHeight(30)

        lbl_interval = QLabel("Refresco (s):")
        self.spin_interval = QSpinBox()
        self.spin_interval.setRange(0, 3600)
        self.spin_interval.setSingleStep(30)
        self.spin_interval.setSpecialValueText("off")
        self.spin_interval.setValue(self.settings.refresh_interval)
        self.spin_interval.setMinimumWidth(80)
        self.spin_interval.setAlignment(Qt.AlignRight)
        self.spin_interval.valueChanged.connect(self._change_interval)

        top_layout.addWidget(self.btn_refresh)
        top_layout.addWidget(lbl_interval)
        top_layout.addWidget(self.spin_interval)
        top_layout.addStretch()
        top_layout.addWidget(self.btn_export)
        top_layout.addWidget(self.dark_mode_check)
        main_layout.addLayout(top_layout)

        # --------- MENSAJE DE ESTADO (cargando / error) ----------
        self.state_label = QLabel("")
        self.state_label.setAlignment(Qt.AlignCenter)
        self.state_label.setObjectName("stateLabel")
        main_layout.addWidget(self.state_label)

        # --------- PANEL DE RESUMEN ----------
        summary_frame = QFrame()
        summary_frame.setFrameShape(QFrame.StyledPanel)
        summary_frame.setObjectName("summaryFrame")
        summary_layout = QHBoxLayout(summary_frame)
        summary_layout.setContentsMargins(10, 6, 10, 6)
        summary_layout.setSpacing(20)

        self.lbl_on_time = self._add_summary_block(
            summary_layout, "Tiempo encendida (24h)"
        )
        self.lbl_switch_ons = self._add_summary_block(
            summary_layout, "Veces que se encendió"
        )
        self.lbl_monthly_avg = self._add_summary_block(
            summary_layout, "Consumo medio mensual (kWh)"
        )
        self.lbl_monthly_cost = self._add_summary_block(
            summary_layout, "Coste mensual"
        )
        main_layout.addWidget(summary_frame)

        # --------- PESTAÑAS ----------
        self.tabs = QTabWidget()
        main_layout.addWidget(self.tabs)

        # --- Lámpara: histograma + últimos registros ---
        lamp_tab = QWidget()
        lamp_layout = QVBoxLayout(lamp_tab)

        self.figure = Figure(figsize=(7, 3.5))
        self.canvas = FigureCanvas(self.figure)
        self.canvas.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.ax_hourly = self.figure.add_subplot(1, 1, 1)

        self.toolbar = NavigationToolbar2QT(self.canvas, self)
        self.toolbar.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)

        self.table = QTableWidget(0, 2)
        self.table.setHorizontalHeaderLabels(["Fecha/Hora", "Estado"])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setMaximumHeight(260)
        self.table.setAlternatingRowColors(True)

        lamp_layout.addWidget(self.toolbar)
        lamp_layout.addWidget(self.canvas)
        lamp_layout.addWidget(self.table)
        self.tabs.addTab(lamp_tab, "Lámpara")

        # --- Sensores: una barra por dispositivo ---
        sensors_tab = QWidget()
        sensors_layout = QVBoxLayout(sensors_tab)

        self.btn_sensors = QPushButton("📡 Cargar sensores")
        self.btn_sensors.setCursor(Qt.PointingHandCursor)
        self.btn_sensors.clicked.connect(self.load_sensors)

        self.sensor_figure = Figure(figsize=(7, 5))
        self.sensor_canvas = FigureCanvas(self.sensor_figure)
        self.sensor_canvas.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.sensor_axes = {
            endpoint: self.sensor_figure.add_subplot(len(SENSOR_ENDPOINTS), 1, i + 1)
            for i, endpoint in enumerate(SENSOR_ENDPOINTS)
        }

        sensors_layout.addWidget(self.btn_sensors, alignment=Qt.AlignLeft)
        sensors_layout.addWidget(self.sensor_canvas)
        self.tabs.addTab(sensors_tab, "Sensores")

        # --------- LABEL INFERIOR ----------
        self.info_label = QLabel(f"API: {self.source.base_url}")
        self.info_label.setStyleSheet("color: gray;")
        main_layout.addWidget(self.info_label)

        # --------- STATUS BAR ----------
        status = QStatusBar()
        self.setStatusBar(status)

        # Tema inicial
        if self.settings.get("dark_mode", False):
            self.dark_mode_check.setChecked(True)
            self._apply_dark_palette()
        else:
            self._apply_light_palette()

        self._change_interval(self.spin_interval.value())
        self.refresh()

    def _add_summary_block(self, layout: QHBoxLayout, title: str) -> QLabel:
        box = QVBoxLayout()
        lbl_title = QLabel(title)
        lbl_title.setAlignment(Qt.AlignCenter)
        lbl_title.setStyleSheet("font-size: 13px; font-weight: 600;")

        lbl_value = QLabel("—")
        lbl_value.setAlignment(Qt.AlignCenter)
        lbl_value.setStyleSheet("font-size: 16px; font-weight: bold; color: green;")

        box.addWidget(lbl_title)
        box.addWidget(lbl_value)
        layout.addLayout(box)
        return lbl_value

    # ===================== LECTURA =====================
    def refresh(self) -> None:
        self._start_fetch(self.controller.begin())

    def _on_timer(self) -> None:
        # no pisar una lectura en curso; solo el botón la reemplaza
        request_id = self.controller.poll()
        if request_id is not None:
            self._start_fetch(request_id)

    def _start_fetch(self, request_id: int) -> None:
        worker = _Worker(lambda: self.controller.load(request_id))
        worker.signals.finished.connect(
            lambda ok, result: self._on_fetch_finished(request_id, ok, result)
        )
        self.pool.start(worker)

    def _on_fetch_finished(self, request_id: int, ok: bool, result: Any) -> None:
        if ok:
            self.controller.dispatch(result)
        else:
            self.controller.dispatch(FetchFailed(request_id, result))

    def _change_interval(self, value: int) -> None:
        self.settings.set("refresh_interval", value)
        if value > 0:
            self.timer.start(value * 1000)
            self.statusBar().showMessage(f"Refresco cada {value} s", 2000)
        else:
            self.timer.stop()

    # ===================== RENDER =====================
    def _render_state(self, state: DashboardState) -> None:
        if isinstance(state, Loading):
            self.state_label.setText(status_text(state))
            self._set_state_style("loading")
            self.btn_refresh.setEnabled(False)
            return

        self.btn_refresh.setEnabled(True)

        if isinstance(state, Failed):
            self.state_label.setText(status_text(state))
            self._set_state_style("error")
            self.statusBar().showMessage("No se pudieron obtener los datos.", 5000)
            return

        if isinstance(state, Ready):
            self.state_label.setText(status_text(state))
            self._set_state_style("ready")
            self._update_summary(state)
            self._update_hourly_chart(state)
            self._update_table(state)
            self.btn_export.setEnabled(bool(state.data.registers))
            self.statusBar().showMessage(
                f"Actualizado: {state.fetched_at.astimezone():%H:%M:%S}", 3000
            )

    def _update_summary(self, state: Ready) -> None:
        data = state.data
        self.lbl_on_time.setText(format_on_time(data.lamp_on_time.total_on_seconds))
        self.lbl_switch_ons.setText(str(count_switch_ons(data.registers)))

        monthly = data.monthly_consumption
        self.lbl_monthly_avg.setText(
            format_consumption(monthly.average_kwh if monthly else None)
        )
        self.lbl_monthly_cost.setText(
            format_consumption(monthly.cost if monthly else None)
        )

    def _update_hourly_chart(self, state: Ready) -> None:
        draw_bar_chart(self.ax_hourly, hourly_chart_spec(state.histogram))
        self.figure.tight_layout()
        self.canvas.draw()

    def _update_table(self, state: Ready) -> None:
        rows = last_registers(state.data.registers, 10)
        self.table.setRowCount(len(rows))
        for i, register in enumerate(rows):
            when = register.timestamp.astimezone().strftime("%d/%m/%Y %H:%M:%S")
            for col, text in enumerate((when, "On" if register.state else "Off")):
                item = QTableWidgetItem(text)
                item.setTextAlignment(Qt.AlignCenter)
                self.table.setItem(i, col, item)

    def _set_state_style(self, level: str) -> None:
        if level == "error":
            self.state_label.setStyleSheet("color: red; font-weight: 600;")
        elif level == "loading":
            self.state_label.setStyleSheet("color: #777777;")
        else:
            self.state_label.setStyleSheet("")

    # ===================== SENSORES =====================
    def load_sensors(self) -> None:
        self.btn_sensors.setEnabled(False)
        self.statusBar().showMessage("Cargando sensores...")

        def fetch_all() -> Dict[str, List[Any]]:
            return {ep: self.source.fetch_sensor_data(ep) for ep in SENSOR_ENDPOINTS}

        worker = _Worker(fetch_all)
        worker.signals.finished.connect(self._on_sensors_finished)
        self.pool.start(worker)

    def _on_sensors_finished(self, ok: bool, result: Any) -> None:
        self.btn_sensors.setEnabled(True)
        if self.controller.closed:
            return
        if not ok:
            QMessageBox.critical(
                self, "Error", f"No se pudieron cargar los sensores:\n{result}"
            )
            return

        keys = self.settings.sensor_keys
        for endpoint, readings in result.items():
            spec = device_chart_spec(readings, keys[endpoint], SENSOR_TITLES[endpoint])
            draw_bar_chart(self.sensor_axes[endpoint], spec)
        self.sensor_figure.tight_layout()
        self.sensor_canvas.draw()
        self.statusBar().showMessage("Sensores actualizados.", 2000)

    # ===================== EXPORTAR A EXCEL =====================
    def export_excel(self) -> None:
        state = self.controller.state
        if not isinstance(state, Ready):
            return

        output_str, _ = QFileDialog.getSaveFileName(
            self,
            "Exportar registros a Excel",
            "registros.xlsx",
            "Excel (*.xlsx)",
        )
        if not output_str:
            return

        try:
            export_to_excel(state.data.registers, Path(output_str))
            logger.info("Registros exportados a %s", output_str)
            QMessageBox.information(
                self,
                "Exportación",
                f"Datos exportados correctamente a:\n{output_str}",
            )
        except Exception as e:
            logger.exception("Fallo al exportar a Excel")
            QMessageBox.critical(
                self, "Error", f"No se pudo exportar a Excel:\n{e}"
            )

    # ===================== CIERRE =====================
    def closeEvent(self, event) -> None:
        # las lecturas en curso terminan pero su resultado se descarta
        self.timer.stop()
        self.controller.close()
        super().closeEvent(event)

    # ===================== MODO OSCURO / CLARO =====================
    def toggle_dark_mode(self, state: int) -> None:
        enabled = self.dark_mode_check.isChecked()
        self.settings.set("dark_mode", enabled)
        if enabled:
            self._apply_dark_palette()
        else:
            self._apply_light_palette()

    def _apply_dark_palette(self) -> None:
        self.setStyleSheet(
            """
            QMainWindow { background-color: #1e1e1e; color: #ffffff; }
            QWidget { background-color: #2b2b2b; color: #ffffff; }
            QSpinBox, QTableWidget {
                background-color: #3a3a3a;
                color: #ffffff;
                border: 1px solid #666;
                border-radius: 4px;
            }
            QHeaderView::section { background-color: #3a3a3a; color: #dddddd; }
            QPushButton {
                background-color: #3a3a3a;
                color: #ffffff;
                border: 1px solid #555;
                border-radius: 4px;
                padding: 4px 10px;
            }
            QPushButton:hover { background-color: #505050; }
            QPushButton:disabled { background-color: #2b2b2b; color: #777777; }
            #summaryFrame { background-color: #3a3a3a; border-radius: 6px; }
            """
        )

    def _apply_light_palette(self) -> None:
        self.setStyleSheet(
            """
            QMainWindow { background-color: #f0f0f0; color: #000000; }
            QWidget { background-color: #ffffff; color: #333333; }
            QSpinBox, QTableWidget {
                background-color: #ffffff;
                color: #555555;
                border: 1px solid #dddddd;
                border-radius: 4px;
            }
            QTableWidget { alternate-background-color: #f9f9f9; }
            QHeaderView::section { background-color: #f5f5f5; color: #555555; }
            QPushButton {
                background-color: #ffffff;
                color: #000000;
                border: 1px solid #aaa;
                border-radius: 4px;
                padding: 4px 10px;
            }
            QPushButton:hover { background-color: #f0f0f0; }
            QPushButton:disabled { background-color: #dddddd; color: #888888; }
            #summaryFrame { background-color: #ffffff; border-radius: 6px; }
            """
        )
