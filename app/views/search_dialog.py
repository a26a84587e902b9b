from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
)


class SearchDialog(QDialog):
    """Asks for a new search term, prefilled with the current one."""

    searchRequested = Signal(str)  # query

    def __init__(self, current_query: str, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Search")
        self.setModal(True)

        root = QVBoxLayout(self)

        row = QHBoxLayout()
        row.addWidget(QLabel("Search"))
        self.query = QLineEdit()
        self.query.setText(current_query)
        self.query.selectAll()
        self.query.setPlaceholderText("e.g. mountains")
        row.addWidget(self.query)
        root.addLayout(row)

        btns = QHBoxLayout()
        btn_ok = QPushButton("Search")
        btn_cancel = QPushButton("Cancel")
        btn_ok.setDefault(True)
        btns.addStretch(1)
        btns.addWidget(btn_ok)
        btns.addWidget(btn_cancel)
        root.addLayout(btns)

        btn_ok.clicked.connect(self._on_submit)
        btn_cancel.clicked.connect(self.reject)
        self.query.returnPressed.connect(self._on_submit)

    def _on_submit(self) -> None:
        text = self.query.text().strip()
        if text:
            self.searchRequested.emit(text)
        self.accept()
