# START OF FILE: botzin/domain/catalog.py

from typing import List

from botzin.domain.models import Product

# Declaration order matters: keyword matching returns the first product that matches.
PRODUCTS: List[Product] = [
    Product(
        name="Cérebro em Alta Performance",
        keywords=(
            "desempenho cerebral", "foco", "memória", "saúde mental", "cansaço mental", "produtividade",
            "mente saudável", "clareza mental", "concentração", "raciocínio", "fadiga mental", "esquecimento",
            "lentidão mental", "excesso de trabalho", "neblina mental", "dificuldade de foco", "saúde neuronal",
        ),
        questions=(
            "Você já sentiu que sua mente tá mais lenta ou esquecendo coisas ultimamente?",
            "O cansaço mental tá te atrapalhando no trabalho ou nos estudos?",
        ),
        campaign_messages={
            'formal': (
                "Imagine ter uma mente afiada e cheia de energia todos os dias! O *Cérebro em Alta Performance* "
                "já ajudou milhares de pessoas a melhorar a concentração e eliminar o cansaço mental. Essa oferta "
                "é por tempo limitado – clique aqui AGORA e transforme sua vida: [link]"
            ),
            'informal': (
                "Mano, pensa num foco absurdo e memória tinindo sem aquele cansaço chato! O *Cérebro em Alta "
                "Performance* tá mudando o jogo pra muita gente, e essa chance é só por hoje. Clica aqui rapidinho "
                "antes que acabe: [link]"
            ),
        },
        link="https://renovacaocosmica.shop/23/crb-fnl",
        description=(
            "Um e-book revolucionário que revela os segredos para otimizar o funcionamento do cérebro e alcançar "
            "alta performance mental. Baseado em estudos científicos, oferece técnicas práticas para melhorar a "
            "saúde cerebral, aumentar a concentração, fortalecer a memória e promover clareza mental."
        ),
        time_preference="morning",
    ),
    Product(
        name="Corpo e Mente",
        keywords=(
            "equilíbrio emocional", "estresse", "saúde do corpo", "bem-estar", "saúde mental", "cansaço",
            "mente equilibrada", "recuperação emocional", "ansiedade", "tensão", "harmonia", "esgotamento",
            "nervosismo", "burnout", "dores", "exaustão",
        ),
        questions=(
            "Você anda sentindo muito estresse ou um peso no corpo ultimamente?",
            "Tá precisando de algo pra dar uma equilibrada na vida?",
        ),
        campaign_messages={
            'formal': (
                "Diga adeus ao estresse e sinta seu corpo e mente em perfeita harmonia! O *Corpo e Mente* é um "
                "método natural que já transformou a vida de milhares. Não perca essa oferta exclusiva – clique "
                "aqui AGORA: [link]"
            ),
            'informal': (
                "Mano, zera esse estresse e fica de boa com o *Corpo e Mente*! Tá todo mundo amando, e essa oferta "
                "é só por hoje. Clica aqui antes que suma: [link]"
            ),
        },
        link="https://renovacaocosmica.shop/23/crpint-fnl",
        description=(
            "Um guia completo para restaurar o equilíbrio físico e emocional com métodos naturais e eficazes. "
            "Combina práticas simples para reduzir o estresse, melhorar a saúde emocional e revitalizar o corpo."
        ),
        time_preference="afternoon",
    ),
    Product(
        name="Sono Profundo, Vida Renovada",
        keywords=(
            "sono profundo", "qualidade do sono", "noites mal dormidas", "cansaço diurno", "recuperação",
            "descanso", "energia", "regeneração", "insônia", "sono reparador",
        ),
        questions=(
            "Você tem acordado cansado ou com dificuldade pra dormir?",
            "Tá precisando de um sono que te deixe renovado?",
        ),
        campaign_messages={
            'formal': (
                "Acorde renovado todas as manhãs com o *Sono Profundo, Vida Renovada*! Milhares já transformaram "
                "suas noites. Não deixe essa oferta passar – clique aqui AGORA: [link]"
            ),
            'informal': (
                "Mano, dorme como nunca e acorda novo com o *Sono Profundo*! Todo mundo tá amando, e essa oferta é "
                "só por hoje. Clica aqui antes que acabe: [link]"
            ),
        },
        link="https://renovacaocosmica.shop/23/sono-fnl",
        description=(
            "Um programa para alcançar um sono profundo e reparador, essencial para a recuperação física e mental. "
            "Inclui técnicas práticas para criar uma rotina de sono que melhora a energia e a saúde geral."
        ),
        time_preference="night",
    ),
]

# END OF FILE: botzin/domain/catalog.py
