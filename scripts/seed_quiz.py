#!/usr/bin/env python3
"""
Script de carga de definicoes de quiz no storage configurado.

Uso:
    python scripts/seed_quiz.py <arquivo.json>
    python scripts/seed_quiz.py quiz1.json quiz2.json
    python scripts/seed_quiz.py --list
    python scripts/seed_quiz.py --delete <quiz_id>

O arquivo JSON contem um objeto QuizDefinition ou uma lista deles.
O backend (agentfs ou mongo) vem de STORAGE_BACKEND.

Exemplos:
    python scripts/seed_quiz.py data/python_basico.json
    STORAGE_BACKEND=mongo python scripts/seed_quiz.py data/*.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Adicionar o diretorio pai ao path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

import app_state
from config import get_config, setup_logging
from quiz.models.schemas import QuizDefinition


def parse_args():
    parser = argparse.ArgumentParser(
        description="Carga de quizzes para o motor de tentativas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        'files',
        nargs='*',
        help='Arquivos JSON com definicoes de quiz'
    )

    parser.add_argument(
        '--list', '-l',
        action='store_true',
        help='Listar quizzes armazenados (apenas AgentFS)'
    )

    parser.add_argument(
        '--delete',
        type=str,
        metavar='QUIZ_ID',
        help='Remover definicao de quiz (apenas AgentFS)'
    )

    return parser.parse_args()


def load_definitions(path: Path) -> list[QuizDefinition]:
    data = json.loads(path.read_text(encoding="utf-8"))
    items = data if isinstance(data, list) else [data]
    return [QuizDefinition.model_validate(item) for item in items]


async def main():
    args = parse_args()
    setup_logging()
    config = get_config()

    await app_state.get_engine()
    store = app_state.quiz_store

    try:
        if args.list or args.delete:
            if config.storage_backend != "agentfs":
                print("❌ --list/--delete disponiveis apenas com STORAGE_BACKEND=agentfs")
                return 1
            if args.delete:
                await store.delete_quiz(args.delete)
                print(f"🗑️  Quiz removido: {args.delete}")
            if args.list:
                for quiz_id in await store.list_quizzes():
                    print(f"   - {quiz_id}")
            return 0

        if not args.files:
            print("Nenhum arquivo informado. Use --help.")
            return 1

        saved = 0
        errors = 0
        for file_name in args.files:
            path = Path(file_name)
            print(f"\n📄 {path}")
            try:
                quizzes = load_definitions(path)
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                errors += 1
                print(f"   ❌ Erro: {e}")
                continue

            for quiz in quizzes:
                await store.save_quiz(quiz)
                saved += 1
                print(
                    f"   ✅ {quiz.id} | {len(quiz.questions)} questoes | "
                    f"{quiz.total_points} pontos"
                )

        print("\n" + "=" * 50)
        print(f"📊 Resumo ({config.storage_backend})")
        print(f"   ✅ Salvos: {saved}")
        print(f"   ❌ Erros:  {errors}")
        return 1 if errors else 0
    finally:
        await app_state.cleanup()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
