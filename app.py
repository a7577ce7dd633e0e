# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py classificar cirurgias.xlsx --saida classificado.xlsx
  python app.py sincronizar --cirurgias cirurgias.xlsx --estoque fixtures.xlsx --pedidos pedidos.json
  python app.py troca-fail --cirurgias cirurgias.xlsx --pedido troca.json
  python app.py analisar --estoque fixtures.xlsx --cirurgias cirurgias.xlsx
  python app.py rel uso --cirurgias cirurgias.xlsx
"""

from implantes.adapters.cli import main

if __name__ == "__main__":
    main()
